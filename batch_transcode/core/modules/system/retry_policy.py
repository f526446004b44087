"""
Bounded retry with a constant delay.

Shared by the scratch copier and the encoder invoker. Each caller picks its
own attempt budget and delay; the sleep function is injectable so tests can
run without waiting.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Type, TypeVar

from ....utils.logging import Logger, get_logger

logger = get_logger("retry_policy")

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Run an operation up to ``max_attempts`` times, waiting ``delay`` seconds between tries."""
    max_attempts: int = 3
    delay: float = 30.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")

    def run(self, operation: Callable[[], T], description: str,
            retry_on: Tuple[Type[BaseException], ...] = (Exception,),
            log: Optional[Logger] = None) -> T:
        """
        Execute ``operation`` with retries.

        Args:
            operation: Zero-argument callable to run
            description: Human-readable name used in log lines
            retry_on: Exception types that trigger a retry; anything else propagates at once
            log: Logger for the WARN/ERROR lines (defaults to this module's)

        Returns:
            Whatever ``operation`` returns on its first successful attempt

        Raises:
            The last exception raised by ``operation`` once attempts are exhausted
        """
        log = log or logger
        attempt = 1
        while True:
            try:
                return operation()
            except retry_on as e:
                if attempt >= self.max_attempts:
                    log.error(f"{description} failed after {self.max_attempts} attempt(s): {e}")
                    raise
                log.warn(f"{description} failed (attempt {attempt}/{self.max_attempts}): {e}. "
                         f"Retrying in {self.delay:g}s...")
                self.sleep(self.delay)
                attempt += 1
