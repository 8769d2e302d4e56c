"""Exception hierarchy for the speedtest client."""


class SpeedtestError(Exception):
    """Base class for every error raised by ``cfclient``."""


class NetworkError(SpeedtestError):
    """A single HTTP exchange failed (transport, TLS, timeout, timing header)."""


class ParseError(SpeedtestError):
    """A metadata endpoint returned a body that could not be understood."""


class MeasurementError(SpeedtestError):
    """A completed exchange could not be turned into a usable sample."""


class EmptySeriesError(SpeedtestError, ValueError):
    """A statistic was requested over a series with no samples."""
