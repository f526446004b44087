"""
Unit tests for per-file results, the batch summary and run reporting.
"""

import csv
import shutil
import smtplib
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from batch_transcode.core.modules.errors import ConfigError
from batch_transcode.core.modules.interface.reporting import (
    CsvReportWriter, LogNotifier, SmtpNotifier, create_notifier, parse_relay,
)
from batch_transcode.core.modules.interface.user_interface import (
    decline_all, format_completion_message, prompt_user_confirmation,
)
from batch_transcode.core.modules.processing.results import (
    REPORT_COLUMNS, BatchSummary, ProcessingResult, ProcessingStatus, compression_ratio,
)


def _sample_summary():
    return BatchSummary([
        ProcessingResult.success("movie.mkv", 5_000_000_000, 2_500_000_000, 120.0),
        ProcessingResult.failed("broken.mkv", 1_000, 3.5),
        ProcessingResult.skipped("done.mkv", 2_000),
        ProcessingResult.success("show.mp4", 1_000, 750, 10.0),
    ])


class TestProcessingResult(unittest.TestCase):

    def test_compression_ratio_example(self):
        result = ProcessingResult.success("movie.mkv", 5_000_000_000, 2_500_000_000, 1.0)
        self.assertEqual(result.compression_ratio, 50.0)
        self.assertEqual(result.status, ProcessingStatus.SUCCESS)
        self.assertEqual(result.bytes_saved, 2_500_000_000)

    def test_compression_ratio_rounding(self):
        self.assertEqual(compression_ratio(3, 2), 33.33)
        self.assertEqual(compression_ratio(0, 0), 0.0)

    def test_failed_and_skipped_shapes(self):
        failed = ProcessingResult.failed("x.mkv", 100, 4.0)
        self.assertEqual((failed.optimized_size, failed.compression_ratio), (0, 0.0))
        self.assertEqual(failed.processing_time, 4.0)
        self.assertEqual(failed.bytes_saved, 0)

        skipped = ProcessingResult.skipped("y.mkv", 100)
        self.assertEqual(skipped.status, ProcessingStatus.SKIPPED)
        self.assertEqual(skipped.processing_time, 0.0)

    def test_as_row(self):
        row = ProcessingResult.success("a.mkv", 3, 2, 1.234).as_row()
        self.assertEqual(list(row), REPORT_COLUMNS)
        self.assertEqual(row["CompressionRatio"], "33.33")
        self.assertEqual(row["ProcessingTime"], "1.23")
        self.assertEqual(row["Status"], "Success")


class TestBatchSummary(unittest.TestCase):

    def test_totals(self):
        summary = _sample_summary()
        self.assertEqual(summary.files_processed, 4)
        self.assertEqual(summary.succeeded, 2)
        self.assertEqual(summary.failed, 1)
        self.assertEqual(summary.skipped, 1)
        self.assertEqual(summary.total_bytes_saved, 2_500_000_250)
        self.assertEqual(summary.average_compression_ratio, 37.5)
        self.assertAlmostEqual(summary.total_processing_time, 133.5)

    def test_empty_summary(self):
        summary = BatchSummary()
        self.assertEqual(summary.files_processed, 0)
        self.assertEqual(summary.average_compression_ratio, 0.0)

    def test_completion_message_lists_failures(self):
        message = format_completion_message(_sample_summary())
        self.assertIn("Files processed: 4", message)
        self.assertIn("Average compression: 37.50%", message)
        self.assertIn("- broken.mkv", message)
        self.assertNotIn("- movie.mkv", message)


class TestCsvReportWriter(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_one_row_per_file(self):
        path = self.temp_dir / "reports" / "run.csv"
        CsvReportWriter(path).write(_sample_summary())

        with open(path, newline='', encoding='utf-8') as f:
            rows = list(csv.DictReader(f))

        self.assertEqual(len(rows), 4)
        self.assertEqual(list(rows[0]), REPORT_COLUMNS)
        self.assertEqual(rows[0]["FileName"], "movie.mkv")
        self.assertEqual(rows[0]["CompressionRatio"], "50.00")
        self.assertEqual([r["Status"] for r in rows], ["Success", "Failed", "Skipped", "Success"])


class TestNotifiers(unittest.TestCase):

    def test_create_notifier_requires_full_configuration(self):
        self.assertIsInstance(create_notifier(None, "ops@example.com", "mail"), LogNotifier)
        self.assertIsInstance(create_notifier("bt@example.com", None, "mail"), LogNotifier)

        notifier = create_notifier("bt@example.com", "ops@example.com", "mail.local:2525")
        self.assertIsInstance(notifier, SmtpNotifier)
        self.assertEqual((notifier.relay, notifier.port), ("mail.local", 2525))

    def test_bad_relay_port_is_config_error(self):
        for relay in ("mail:abc", "mail:0", "mail:70000", ":25"):
            with self.assertRaises(ConfigError):
                create_notifier("bt@example.com", "ops@example.com", relay)
        self.assertEqual(parse_relay("mail"), ("mail", 25))

    def test_log_notifier_sends_nothing(self):
        self.assertFalse(LogNotifier().send("subject", "body"))

    @patch("batch_transcode.core.modules.interface.reporting.smtplib.SMTP")
    def test_smtp_notifier_sends_message(self, mock_smtp):
        client = MagicMock()
        mock_smtp.return_value.__enter__.return_value = client

        sent = SmtpNotifier("bt@example.com", "ops@example.com", "mail").send("Done", "All good")

        self.assertTrue(sent)
        mock_smtp.assert_called_once_with("mail", 25, timeout=30.0)
        message = client.send_message.call_args[0][0]
        self.assertEqual(message["Subject"], "Done")
        self.assertEqual(message["To"], "ops@example.com")

    @patch("batch_transcode.core.modules.interface.reporting.smtplib.SMTP")
    def test_smtp_failure_is_not_fatal(self, mock_smtp):
        mock_smtp.side_effect = smtplib.SMTPConnectError(421, "busy")
        self.assertFalse(SmtpNotifier("a@x", "b@x", "mail").send("s", "b"))


class TestConfirmation(unittest.TestCase):

    @patch("builtins.input", side_effect=EOFError)
    def test_closed_stdin_declines(self, _input):
        self.assertFalse(prompt_user_confirmation("Delete?"))

    @patch("builtins.input", side_effect=["maybe", "YES"])
    def test_reprompts_until_answered(self, _input):
        self.assertTrue(prompt_user_confirmation("Delete?"))

    def test_decline_all(self):
        self.assertFalse(decline_all("anything"))


if __name__ == '__main__':
    unittest.main()
