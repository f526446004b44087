"""
Unit tests for RetryableCopier.
"""

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from batch_transcode.core.modules.errors import StagingError
from batch_transcode.core.modules.processing.copier import RetryableCopier
from batch_transcode.core.modules.system.retry_policy import RetryPolicy


class TestRetryableCopier(unittest.TestCase):
    """Test staging copies and their verification."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.source = self.temp_dir / "share" / "movie.mkv"
        self.source.parent.mkdir()
        self.source.write_bytes(b"x" * 4096)
        self.destination = self.temp_dir / "scratch" / "movie.mkv"
        self.sleep = Mock()
        self.copier = RetryableCopier(RetryPolicy(max_attempts=3, delay=1, sleep=self.sleep))

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_copy_success(self):
        result = self.copier.copy(self.source, self.destination)

        self.assertEqual(result, self.destination)
        self.assertEqual(self.destination.read_bytes(), self.source.read_bytes())
        self.sleep.assert_not_called()

    def test_copy_replaces_existing_destination(self):
        self.destination.parent.mkdir(parents=True)
        self.destination.write_bytes(b"stale")

        self.copier.copy(self.source, self.destination)

        self.assertEqual(self.destination.stat().st_size, 4096)

    def test_transient_copy_error_is_retried(self):
        real_copy = shutil.copy2
        calls = {"n": 0}

        def flaky_copy(src, dst):
            calls["n"] += 1
            if calls["n"] == 1:
                raise OSError("network name no longer available")
            return real_copy(src, dst)

        with patch('batch_transcode.core.modules.processing.copier.shutil.copy2', side_effect=flaky_copy):
            self.copier.copy(self.source, self.destination)

        self.assertEqual(calls["n"], 2)
        self.assertEqual(self.sleep.call_count, 1)
        self.assertEqual(self.destination.stat().st_size, 4096)

    def test_size_mismatch_is_retried_then_raises(self):
        def truncated_copy(src, dst):
            Path(dst).write_bytes(b"x" * 100)

        with patch('batch_transcode.core.modules.processing.copier.shutil.copy2',
                   side_effect=truncated_copy) as mock_copy:
            with self.assertRaises(StagingError) as ctx:
                self.copier.copy(self.source, self.destination)

        self.assertEqual(mock_copy.call_count, 3)
        self.assertEqual(self.sleep.call_count, 2)
        self.assertIn("100 of 4096", str(ctx.exception))

    def test_missing_source_raises_staging_error(self):
        with self.assertRaises(StagingError):
            self.copier.copy(self.temp_dir / "nope.mkv", self.destination)
        self.assertFalse(self.destination.exists())

    def test_exhaustion_logs_warn_per_attempt_and_error(self):
        with patch('batch_transcode.core.modules.processing.copier.logger') as mock_logger, \
                patch('batch_transcode.core.modules.processing.copier.shutil.copy2',
                      side_effect=OSError("denied")):
            with self.assertRaises(StagingError):
                self.copier.copy(self.source, self.destination)

        self.assertEqual(mock_logger.warn.call_count, 2)
        self.assertEqual(mock_logger.error.call_count, 1)


if __name__ == '__main__':
    unittest.main()
