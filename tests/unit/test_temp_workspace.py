"""
Unit tests for TempWorkspaceManager's double-confirmation cleanup.
"""

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from batch_transcode.core.modules.processing.temp_workspace import TempWorkspaceManager


class TestTempWorkspaceManager(unittest.TestCase):
    """Test stale scratch file handling."""

    def setUp(self):
        self.temp_root = Path(tempfile.mkdtemp())
        self.stale = [self.temp_root / "movie.mkv", self.temp_root / "movie_optimized.mkv"]
        for f in self.stale:
            f.write_bytes(b"partial")
        (self.temp_root / "nested").mkdir()
        (self.temp_root / "nested" / "keep.mkv").write_bytes(b"keep")

    def tearDown(self):
        shutil.rmtree(self.temp_root, ignore_errors=True)

    def test_lists_only_top_level_files(self):
        manager = TempWorkspaceManager(self.temp_root, confirm=Mock(return_value=True))
        self.assertEqual(manager.list_stale_files(), sorted(self.stale))

    def test_two_confirmations_delete_files(self):
        confirm = Mock(return_value=True)
        manager = TempWorkspaceManager(self.temp_root, confirm=confirm)

        removed = manager.clear_stale_files()

        self.assertEqual(removed, 2)
        self.assertEqual(confirm.call_count, 2)
        for f in self.stale:
            self.assertFalse(f.exists())
        self.assertTrue((self.temp_root / "nested" / "keep.mkv").exists())

    def test_first_decline_leaves_files(self):
        confirm = Mock(return_value=False)
        manager = TempWorkspaceManager(self.temp_root, confirm=confirm)

        self.assertEqual(manager.clear_stale_files(), 0)
        self.assertEqual(confirm.call_count, 1)
        for f in self.stale:
            self.assertTrue(f.exists())

    def test_second_decline_leaves_files(self):
        confirm = Mock(side_effect=[True, False])
        manager = TempWorkspaceManager(self.temp_root, confirm=confirm)

        self.assertEqual(manager.clear_stale_files(), 0)
        self.assertEqual(confirm.call_count, 2)
        for f in self.stale:
            self.assertTrue(f.exists())

    def test_empty_root_does_not_prompt(self):
        empty = self.temp_root / "nested_empty"
        empty.mkdir()
        confirm = Mock()

        self.assertEqual(TempWorkspaceManager(empty, confirm=confirm).clear_stale_files(), 0)
        confirm.assert_not_called()

    def test_absent_root_does_not_prompt(self):
        confirm = Mock()
        manager = TempWorkspaceManager(self.temp_root / "missing", confirm=confirm)

        self.assertEqual(manager.clear_stale_files(), 0)
        confirm.assert_not_called()

    def test_deletion_failure_is_warning_only(self):
        manager = TempWorkspaceManager(self.temp_root, confirm=Mock(return_value=True))
        real_unlink = Path.unlink

        def unlink(path, *args, **kwargs):
            if path.name == "movie.mkv":
                raise PermissionError("file in use")
            return real_unlink(path, *args, **kwargs)

        with patch.object(Path, 'unlink', unlink), \
                patch('batch_transcode.core.modules.processing.temp_workspace.logger') as mock_logger:
            removed = manager.clear_stale_files()

        self.assertEqual(removed, 1)
        self.assertTrue((self.temp_root / "movie.mkv").exists())
        self.assertFalse((self.temp_root / "movie_optimized.mkv").exists())
        self.assertTrue(any("file in use" in c.args[0] for c in mock_logger.warn.call_args_list))


if __name__ == '__main__':
    unittest.main()
