"""Conversion results and run-wide statistics."""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class ConversionStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of one conversion attempt. Exactly one per document."""

    source_path: Path
    output_path: Path
    document_type: str
    status: ConversionStatus
    duration_ms: float
    byte_size: Optional[int] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is ConversionStatus.SUCCESS

    def to_summary_entry(self) -> Dict[str, Any]:
        """Per-document record consumed by downstream registry tooling."""
        entry = {
            "source": str(self.source_path),
            "output": str(self.output_path),
            "type": self.document_type,
            "success": self.success,
        }
        if self.byte_size is not None:
            entry["size"] = self.byte_size
        if self.error is not None:
            entry["error"] = self.error
        return entry


@dataclass(frozen=True)
class RunSummary:
    total: int
    successful: int
    failed: int
    elapsed_ms: float

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "elapsed": round(self.elapsed_ms),
        }


@dataclass
class RunStatistics:
    total: int = 0
    successful: int = 0
    failed: int = 0
    start_time: float = field(default_factory=time.monotonic)


class StatisticsAggregator:
    """Counts results as they arrive, from any number of concurrent conversions."""

    def __init__(self, total: int = 0):
        self.stats = RunStatistics(total=total)
        self.results: List[ConversionResult] = []
        self._lock = threading.Lock()

    def set_total(self, total: int) -> None:
        with self._lock:
            self.stats.total = total

    def record(self, result: ConversionResult) -> None:
        with self._lock:
            if result.success:
                self.stats.successful += 1
            else:
                self.stats.failed += 1
            self.results.append(result)

    def summary(self) -> RunSummary:
        with self._lock:
            return RunSummary(
                total=self.stats.total,
                successful=self.stats.successful,
                failed=self.stats.failed,
                elapsed_ms=(time.monotonic() - self.stats.start_time) * 1000,
            )

    def failures(self) -> List[ConversionResult]:
        with self._lock:
            return [r for r in self.results if not r.success]
