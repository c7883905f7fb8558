"""Process scan orchestrator: runs the compiled rule set over process memory."""

import logging
import os
from typing import Iterator, NamedTuple, Optional

import psutil

from ..aggregator import PROCESS_PATTERN_SCORE, MatchCollector
from ..errors import EngineError
from ..models import Finding, Match, MatchKind, ScanConfig, ScanModule, SubjectType
from ..reporting import FindingSink
from ..rules import CompiledRuleSet
from ..scanner_base import ItemOutcome, ScannerBase


class ProcessRef(NamedTuple):
    pid: int
    name: str

    def __str__(self) -> str:
        return f"PID: {self.pid} PROCESS: {self.name}"


class ProcessScanner(ScannerBase):
    """Pattern scanning of running processes. Processes are not hashed."""

    def __init__(
        self,
        rules: CompiledRuleSet,
        scan_config: ScanConfig,
        sink: Optional[FindingSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(rules, scan_config, sink, logger)
        self.own_pid = os.getpid()

    @property
    def module(self) -> ScanModule:
        return ScanModule.PROCESS_CHECK

    def iter_subjects(self, target: Optional[str] = None) -> Iterator[ProcessRef]:
        for proc in psutil.process_iter(["pid", "name"]):
            info = proc.info
            yield ProcessRef(pid=info["pid"], name=info.get("name") or "")

    def scan_subject(self, process: ProcessRef) -> ItemOutcome:
        if process.pid == self.own_pid:
            self.logger.debug(f"Skipping own process PID: {process.pid}")
            return ItemOutcome.SKIPPED

        self.logger.debug(f"Scanning process PID: {process.pid} NAME: {process.name}")
        try:
            engine_matches = self.rules.scan_process(process.pid, self.scan_config.process_timeout)
        except EngineError as e:
            self.report_access_error(
                f"Error while scanning process memory PROCESS: {process.name} PID: {process.pid} ERROR: {e}"
            )
            return ItemOutcome.ERROR

        collector = MatchCollector(self.scan_config.max_matches)
        for engine_match in engine_matches:
            collector.add(
                Match(
                    kind=MatchKind.PATTERN,
                    message=f"YARA match with rule {engine_match.rule}",
                    score=PROCESS_PATTERN_SCORE,
                    reference=engine_match.rule,
                )
            )

        if not collector:
            return ItemOutcome.CLEAN

        self.emit_finding(
            Finding(
                subject_type=SubjectType.PROCESS,
                pid=process.pid,
                process_name=process.name,
                matches=collector.matches,
                total_score=collector.total_score,
            )
        )
        return ItemOutcome.MATCHED
