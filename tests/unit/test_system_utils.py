"""
Unit tests for the subprocess and cleanup helpers.
"""

import io
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from batch_transcode.core.modules.system.system_utils import remove_file_quietly, stream_command


class TestStreamCommand(unittest.TestCase):

    @patch("batch_transcode.core.modules.system.system_utils.subprocess.Popen")
    def test_forwards_non_empty_lines_and_returns_exit_code(self, mock_popen):
        process = MagicMock()
        process.stdout = io.StringIO("Encoding: 10 %\n\n  \nMuxing\n")
        process.wait.return_value = 3
        mock_popen.return_value = process
        lines = []

        exit_code = stream_command(["HandBrakeCLI", "-i", "a.mkv"], lines.append)

        self.assertEqual(exit_code, 3)
        self.assertEqual(lines, ["Encoding: 10 %", "Muxing"])
        self.assertTrue(process.stdout.closed)

    @patch("batch_transcode.core.modules.system.system_utils.subprocess.Popen")
    def test_waits_for_process_when_callback_fails(self, mock_popen):
        process = MagicMock()
        process.stdout = io.StringIO("line\n")
        mock_popen.return_value = process

        def explode(line):
            raise RuntimeError("callback failed")

        with self.assertRaises(RuntimeError):
            stream_command(["HandBrakeCLI"], explode)
        process.wait.assert_called_once()


class TestRemoveFileQuietly(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_missing_file_is_not_an_error(self):
        self.assertFalse(remove_file_quietly(self.temp_dir / "absent.mkv"))

    def test_removes_existing_file(self):
        path = self.temp_dir / "scratch.mkv"
        path.write_bytes(b"x")
        self.assertTrue(remove_file_quietly(path))
        self.assertFalse(path.exists())

    def test_unlink_failure_is_logged(self):
        path = self.temp_dir / "locked.mkv"
        path.write_bytes(b"x")
        with patch.object(Path, "unlink", side_effect=PermissionError("locked")), \
                patch("batch_transcode.core.modules.system.system_utils.logger") as mock_logger:
            self.assertFalse(remove_file_quietly(path))
        mock_logger.warn.assert_called_once()
        self.assertTrue(path.exists())


if __name__ == '__main__':
    unittest.main()
