"""Tests for the latency / download / upload drivers with a scripted executor."""

import unittest

from cfclient.download import DownloadResult, DownloadTester, PresetRun, download_speed
from cfclient.errors import EmptySeriesError, MeasurementError, NetworkError
from cfclient.latency import LatencyTester
from cfclient.timing import TimingRecord
from cfclient.upload import UploadTester, upload_speed


def _record(start=0.0, first_byte=52.0, end=60.0, server_ms=2.0):
    return TimingRecord(
        start=start, first_byte=first_byte, end=end, server_processing_ms=server_ms, status=200
    )


class FakeExecutor:
    """Returns scripted records; ``None`` entries raise ``NetworkError``."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = []

    async def _next(self, kind, num_bytes):
        self.calls.append((kind, num_bytes))
        item = self.script.pop(0)
        if item is None:
            raise NetworkError("connection reset by peer")
        return item

    async def download(self, num_bytes):
        return await self._next("download", num_bytes)

    async def upload(self, num_bytes):
        return await self._next("upload", num_bytes)


class TestLatencyTester(unittest.IsolatedAsyncioTestCase):
    async def test_constant_latency(self):
        executor = FakeExecutor([_record() for _ in range(100)])
        result = await LatencyTester(executor).run()

        self.assertEqual(len(result.samples), 100)
        self.assertTrue(all(abs(s - 50.0) < 1e-9 for s in result.samples))
        self.assertAlmostEqual(result.stats.median, 50.0)
        self.assertAlmostEqual(result.stats.jitter, 0.0)
        self.assertAlmostEqual(result.stats.p99, 50.0)
        self.assertEqual(executor.calls, [("download", 200)] * 100)

    async def test_collection_order_kept(self):
        records = [_record(first_byte=fb, server_ms=0.0) for fb in (30.0, 10.0, 20.0)]
        result = await LatencyTester(FakeExecutor(records), count=3).run()

        self.assertEqual(result.samples, [30.0, 10.0, 20.0])
        # |30-10| + |10-20| = 30 / 2
        self.assertAlmostEqual(result.stats.jitter, 15.0)

    async def test_failures_skipped(self):
        script = [_record(), None, _record(), None, _record(), _record(), None, _record(), _record(), _record()]
        result = await LatencyTester(FakeExecutor(script), count=10).run()

        self.assertEqual(result.attempts, 10)
        self.assertEqual(result.failures, 3)
        self.assertEqual(len(result.samples), 7)
        self.assertEqual(result.stats.count, 7)

    async def test_all_failed(self):
        with self.assertRaises(EmptySeriesError):
            await LatencyTester(FakeExecutor([None] * 5), count=5).run()

    async def test_progress_callback(self):
        seen = []
        tester = LatencyTester(FakeExecutor([_record(), None]), count=2)
        tester.on_progress = lambda done, total: seen.append((done, total))
        await tester.run()
        self.assertEqual(seen, [(1, 2), (2, 2)])

    async def test_to_dict(self):
        result = await LatencyTester(FakeExecutor([_record(), _record()]), count=2).run()
        d = result.to_dict()
        self.assertEqual(d["attempts"], 2)
        self.assertEqual(d["failures"], 0)
        self.assertEqual(d["count"], 2)


class TestDownloadTester(unittest.IsolatedAsyncioTestCase):
    async def test_transfer_phase_only(self):
        # 125 kB over 10 ms of transfer = 100 Mbps; TTFB is ignored
        record = _record(start=0.0, first_byte=500.0, end=510.0)
        samples = await DownloadTester(FakeExecutor([record])).measure(125_000, 1)
        self.assertEqual(len(samples), 1)
        self.assertAlmostEqual(samples[0], 100.0)

    async def test_failures_skipped(self):
        script = [_record(), None, None, None, _record(), _record(), _record(), _record(), _record(), _record()]
        samples = await DownloadTester(FakeExecutor(script)).measure(101_000, 10)
        self.assertEqual(len(samples), 7)

    async def test_zero_transfer_is_measurement_error(self):
        record = _record(first_byte=10.0, end=10.0)
        samples = await DownloadTester(FakeExecutor([record, _record()])).measure(1000, 2)
        self.assertEqual(len(samples), 1)

    async def test_presets_concatenated(self):
        # transfer 8 ms each; sizes give distinct speeds
        executor = FakeExecutor([_record() for _ in range(3)])
        result = await DownloadTester(executor).run([(100_000, 2), (200_000, 1)])

        self.assertEqual([r.num_bytes for r in result.runs], [100_000, 200_000])
        self.assertEqual(len(result.samples), 3)
        self.assertEqual(result.stats.count, 3)
        self.assertAlmostEqual(result.speed_mbps, result.stats.p90)
        self.assertEqual(
            executor.calls, [("download", 100_000), ("download", 100_000), ("download", 200_000)]
        )

    async def test_all_failed(self):
        with self.assertRaises(EmptySeriesError):
            await DownloadTester(FakeExecutor([None, None])).run([(101_000, 2)])


class TestUploadTester(unittest.IsolatedAsyncioTestCase):
    async def test_uses_server_time(self):
        # 11 kB in 0.88 ms server time = 100 Mbps; client phases ignored
        record = _record(start=0.0, first_byte=900.0, end=950.0, server_ms=0.88)
        samples = await UploadTester(FakeExecutor([record])).measure(11_000, 1)
        self.assertAlmostEqual(samples[0], 100.0)

    async def test_zero_server_time_skipped(self):
        script = [_record(server_ms=0.0), _record(server_ms=1.0)]
        samples = await UploadTester(FakeExecutor(script)).measure(1000, 2)
        self.assertEqual(len(samples), 1)

    async def test_run(self):
        executor = FakeExecutor([_record(server_ms=1.0), _record(server_ms=2.0)])
        result = await UploadTester(executor).run([(11_000, 2)])
        self.assertEqual(executor.calls, [("upload", 11_000)] * 2)
        self.assertEqual(result.stats.count, 2)
        d = result.to_dict()
        self.assertIn("runs", d)
        self.assertEqual(d["runs"][0]["iterations"], 2)


class TestSpeedHelpers(unittest.TestCase):
    def test_download_speed(self):
        self.assertAlmostEqual(download_speed(_record(first_byte=0.0, end=10.0), 125_000), 100.0)

    def test_upload_speed_zero(self):
        with self.assertRaises(MeasurementError):
            upload_speed(_record(server_ms=0.0), 1000)

    def test_quantile_reported(self):
        result = DownloadResult(runs=[PresetRun(1000, 5, [10.0, 20.0, 30.0, 40.0, 50.0])])
        result.calculate()
        self.assertAlmostEqual(result.speed_mbps, 46.0)

    def test_preset_run(self):
        run = PresetRun(1000, 4, [10.0, 30.0])
        self.assertEqual(run.failures, 2)
        self.assertAlmostEqual(run.median_mbps, 20.0)
        self.assertIsNone(PresetRun(1000, 1).median_mbps)


if __name__ == "__main__":
    unittest.main()
