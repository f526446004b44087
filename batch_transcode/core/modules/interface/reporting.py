"""
Run report and completion notification.

The CSV report holds one row per file. Notification goes out by e-mail when a
sender, recipient and relay are configured; otherwise it is only logged.
"""

import csv
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Optional, Tuple

from ....utils.logging import get_logger
from ..errors import ConfigError
from ..processing.results import REPORT_COLUMNS, BatchSummary

logger = get_logger("reporting")


class CsvReportWriter:
    """Persists a BatchSummary as CSV."""

    def __init__(self, path: Path):
        self.path = path

    def write(self, summary: BatchSummary) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=REPORT_COLUMNS)
            writer.writeheader()
            for result in summary.results:
                writer.writerow(result.as_row())
        logger.info(f"Report written: {self.path}")
        return self.path


class LogNotifier:
    """Stand-in used when e-mail notification is not configured."""

    def send(self, subject: str, body: str) -> bool:
        logger.debug(f"Notification disabled; not sending '{subject}'")
        return False


class SmtpNotifier:
    """Sends the completion message through an SMTP relay."""

    def __init__(self, sender: str, recipient: str, relay: str, port: int = 25, timeout: float = 30.0):
        self.sender = sender
        self.recipient = recipient
        self.relay = relay
        self.port = port
        self.timeout = timeout

    def send(self, subject: str, body: str) -> bool:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = self.recipient
        message["Subject"] = subject
        message.set_content(body)
        try:
            with smtplib.SMTP(self.relay, self.port, timeout=self.timeout) as smtp:
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.warn(f"Could not send notification via {self.relay}: {e}")
            return False
        logger.info(f"Notification sent to {self.recipient}")
        return True


def parse_relay(relay: str) -> Tuple[str, int]:
    """Split ``host[:port]``; the port defaults to 25."""
    host, _, port = relay.partition(":")
    if not host:
        raise ConfigError(f"Invalid SMTP relay {relay!r}: missing host")
    if not port:
        return host, 25
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ConfigError(f"Invalid SMTP relay {relay!r}: port must be 1-65535")
    return host, int(port)


def create_notifier(sender: Optional[str], recipient: Optional[str], relay: Optional[str]):
    """SmtpNotifier when fully configured, LogNotifier otherwise."""
    if sender and recipient and relay:
        host, port = parse_relay(relay)
        return SmtpNotifier(sender, recipient, host, port)
    return LogNotifier()
