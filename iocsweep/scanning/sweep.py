"""Sweep orchestration: builds the shared indicator store and rule set once and
runs the active scan modules in sequence."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .engine import PatternEngine
from .indicators import IndicatorStore, load_indicators
from .models import ScanConfig, ScanModule, ScanStats, ScanStatus, SweepResult
from .reporting import FindingSink, LogSink
from .rules import CompiledRuleSet, RuleCompiler
from .scanner_base import ScannerBase
from .scanners.file_scanner import FileScanner, default_scan_root
from .scanners.process_scanner import ProcessScanner

# Processes are checked before the (much longer) filesystem walk.
MODULE_ORDER: List[ScanModule] = [ScanModule.PROCESS_CHECK, ScanModule.FILE_SCAN]


class SweepPipeline:
    """Loads signatures and runs process and file scans with shared, read-only inputs."""

    def __init__(
        self,
        engine: PatternEngine,
        scan_config: Optional[ScanConfig] = None,
        sink: Optional[FindingSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.engine = engine
        self.scan_config = scan_config if scan_config is not None else ScanConfig()
        self.sink = sink if sink is not None else LogSink()
        self.logger = logger or logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.indicators: Optional[IndicatorStore] = None
        self.rules: Optional[CompiledRuleSet] = None

    def initialize(self, indicator_file: Union[str, Path], rules_dir: Union[str, Path]) -> None:
        """Load hash IOCs and compile rules.

        Raises IndicatorLoadError or RuleCompilationError; no sweep can run
        without both.
        """
        self.logger.info("Initialize hash IOCs ...")
        self.indicators = load_indicators(indicator_file, self.logger)
        self.logger.info("Initializing YARA rules ...")
        self.rules = RuleCompiler(self.engine, self.logger).compile_all(rules_dir)

    def build_scanner(self, module: ScanModule) -> ScannerBase:
        if self.rules is None or self.indicators is None:
            raise RuntimeError("SweepPipeline.initialize() must be called before scanning")
        if module == ScanModule.FILE_SCAN:
            return FileScanner(self.rules, self.indicators, self.scan_config, self.sink)
        if module == ScanModule.PROCESS_CHECK:
            return ProcessScanner(self.rules, self.scan_config, self.sink)
        raise ValueError(f"Unknown scan module: {module}")

    def run(
        self,
        target: Optional[str] = None,
        modules: Optional[Iterable[ScanModule]] = None,
    ) -> SweepResult:
        """Run the active modules in MODULE_ORDER.

        A module that fails unexpectedly is recorded as FAILED and the
        sweep moves on to the next one.
        """
        target = target or default_scan_root()
        active = set(MODULE_ORDER if modules is None else modules)
        ordered = [m for m in MODULE_ORDER if m in active]

        result = SweepResult(target=target, status=ScanStatus.RUNNING, started_at=datetime.now())
        self.logger.info(f"Active modules MODULES: {[m.value for m in ordered]}")

        if ScanModule.FILE_SCAN in active and not Path(target).exists():
            self.logger.warning(f"Scan target does not exist TARGET: {target}")

        for module in ordered:
            if module == ScanModule.FILE_SCAN:
                self.logger.info(f"Scanning local file system TARGET: {target} ...")
            else:
                self.logger.info("Scanning running processes ...")

            scanner = self.build_scanner(module)
            try:
                stats = scanner.run(target)
            except Exception as e:
                self.logger.error(f"Module {module.value} failed: {e}", exc_info=True)
                stats = ScanStats(
                    module=module,
                    status=ScanStatus.FAILED,
                    completed_at=datetime.now(),
                    error_message=str(e),
                )
            result.module_results.append(stats)

        result.status = ScanStatus.COMPLETED
        result.completed_at = datetime.now()
        self.logger.info(
            f"Sweep finished: {result.total_findings} findings, {result.total_errors} errors "
            f"in {result.duration_seconds:.1f}s"
        )
        return result
