"""Abstract base class for the file and process scanners.

Implements the template method pattern: subclasses enumerate subjects and
scan a single subject, while run() handles counting, per-item error
isolation, timing and the optional worker pool.
"""

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional, Set

from .models import Finding, ScanConfig, ScanModule, ScanStats, ScanStatus
from .reporting import FindingSink, LogSink
from .rules import CompiledRuleSet

# Pending items per worker before the producer waits.
QUEUE_FACTOR = 4


class ItemOutcome(str, Enum):
    SKIPPED = "skipped"
    CLEAN = "clean"
    MATCHED = "matched"
    ERROR = "error"


class ScannerBase(ABC):
    """Shared run loop for scan orchestrators.

    Subclasses must implement:
      - module: the ScanModule this scanner implements
      - iter_subjects(target) -> iterable of items to scan
      - scan_subject(subject) -> ItemOutcome
    """

    def __init__(
        self,
        rules: CompiledRuleSet,
        scan_config: ScanConfig,
        sink: Optional[FindingSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.rules = rules
        self.scan_config = scan_config
        self.logger = logger or logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.sink = sink if sink is not None else LogSink()
        self._stats: Optional[ScanStats] = None
        self._stats_lock = threading.Lock()

    @property
    @abstractmethod
    def module(self) -> ScanModule:
        """The module name reported in ScanStats."""

    @abstractmethod
    def iter_subjects(self, target: Optional[str]) -> Iterable[Any]:
        """Yield the items (paths, processes) to scan."""

    @abstractmethod
    def scan_subject(self, subject: Any) -> ItemOutcome:
        """Scan one item. Must not raise for expected per-item failures."""

    def run(self, target: Optional[str] = None) -> ScanStats:
        """Scan every subject and return the module's counters.

        An exception escaping scan_subject is logged and counted as an
        error; it never stops the remaining items.
        """
        stats = ScanStats(module=self.module, status=ScanStatus.RUNNING, started_at=datetime.now())
        self._stats = stats

        subjects = self.iter_subjects(target)
        if self.scan_config.workers > 1:
            self._run_parallel(subjects, stats)
        else:
            for subject in subjects:
                self._tally(stats, self._safe_scan(subject))

        stats.status = ScanStatus.COMPLETED
        stats.completed_at = datetime.now()
        self.logger.info(
            f"{self.module.value} completed: {stats.scanned} scanned, {stats.skipped} skipped, "
            f"{stats.errors} errors, {stats.findings} findings"
        )
        return stats

    def _run_parallel(self, subjects: Iterable[Any], stats: ScanStats) -> None:
        workers = self.scan_config.workers
        pending: Set[Future] = set()
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=self.module.value) as executor:
            for subject in subjects:
                if len(pending) >= workers * QUEUE_FACTOR:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        self._tally(stats, future.result())
                pending.add(executor.submit(self._safe_scan, subject))
            for future in pending:
                self._tally(stats, future.result())

    def _safe_scan(self, subject: Any) -> ItemOutcome:
        try:
            return self.scan_subject(subject)
        except Exception as e:
            self.logger.error(f"Unexpected error while scanning {subject}: {e}", exc_info=True)
            return ItemOutcome.ERROR

    @staticmethod
    def _tally(stats: ScanStats, outcome: ItemOutcome) -> None:
        if outcome == ItemOutcome.SKIPPED:
            stats.skipped += 1
        elif outcome == ItemOutcome.ERROR:
            stats.errors += 1
        else:
            stats.scanned += 1

    def report_access_error(self, message: str) -> None:
        """Log a recoverable access problem at error or debug level."""
        if self.scan_config.show_access_errors:
            self.logger.error(message)
        else:
            self.logger.debug(message)

    def emit_finding(self, finding: Finding) -> None:
        stats = self._stats
        if stats is not None:
            with self._stats_lock:
                stats.findings += 1
                stats.max_score = max(stats.max_score, finding.total_score)
        self.sink.emit(finding)

