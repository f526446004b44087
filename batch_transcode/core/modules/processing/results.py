"""Per-file results and the batch summary built from them."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

REPORT_COLUMNS = ["FileName", "OriginalSize", "OptimizedSize",
                  "CompressionRatio", "ProcessingTime", "Status"]


class ProcessingStatus(Enum):
    SUCCESS = "Success"
    FAILED = "Failed"
    SKIPPED = "Skipped"


def compression_ratio(original_size: int, optimized_size: int) -> float:
    """Percentage saved, rounded to two decimals. 0.0 for empty originals."""
    if original_size <= 0:
        return 0.0
    return round((original_size - optimized_size) / original_size * 100, 2)


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of one file's trip through the pipeline."""
    file_name: str
    original_size: int
    optimized_size: int
    compression_ratio: float
    processing_time: float
    status: ProcessingStatus

    @classmethod
    def success(cls, file_name: str, original_size: int, optimized_size: int,
                processing_time: float) -> "ProcessingResult":
        return cls(file_name, original_size, optimized_size,
                   compression_ratio(original_size, optimized_size),
                   processing_time, ProcessingStatus.SUCCESS)

    @classmethod
    def failed(cls, file_name: str, original_size: int, processing_time: float) -> "ProcessingResult":
        return cls(file_name, original_size, 0, 0.0, processing_time, ProcessingStatus.FAILED)

    @classmethod
    def skipped(cls, file_name: str, original_size: int) -> "ProcessingResult":
        return cls(file_name, original_size, 0, 0.0, 0.0, ProcessingStatus.SKIPPED)

    @property
    def bytes_saved(self) -> int:
        if self.status != ProcessingStatus.SUCCESS:
            return 0
        return self.original_size - self.optimized_size

    def as_row(self) -> Dict[str, object]:
        return {
            "FileName": self.file_name,
            "OriginalSize": self.original_size,
            "OptimizedSize": self.optimized_size,
            "CompressionRatio": f"{self.compression_ratio:.2f}",
            "ProcessingTime": f"{self.processing_time:.2f}",
            "Status": self.status.value,
        }


@dataclass
class BatchSummary:
    """Ordered results of a run plus derived totals."""
    results: List[ProcessingResult] = field(default_factory=list)

    def _count(self, status: ProcessingStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def files_processed(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return self._count(ProcessingStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return self._count(ProcessingStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(ProcessingStatus.SKIPPED)

    @property
    def total_bytes_saved(self) -> int:
        return sum(r.bytes_saved for r in self.results)

    @property
    def average_compression_ratio(self) -> float:
        """Mean ratio over successful files only."""
        ratios = [r.compression_ratio for r in self.results if r.status == ProcessingStatus.SUCCESS]
        if not ratios:
            return 0.0
        return round(sum(ratios) / len(ratios), 2)

    @property
    def total_processing_time(self) -> float:
        return sum(r.processing_time for r in self.results)
