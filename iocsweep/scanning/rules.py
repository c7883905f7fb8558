"""Rule compilation facade.

All rule files that compile on their own are concatenated into one source
and compiled as a single set; one big set scans faster than a scan per file.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from .engine import EngineMatch, PatternEngine
from .errors import EngineError, RuleCompilationError
from .models import ExternalContext

RULE_EXTENSIONS: Tuple[str, ...] = (".yar", ".yara")


@dataclass(frozen=True)
class CompiledRuleSet:
    """Opaque compiled rules plus the engine that can run them."""

    engine: PatternEngine
    handle: Any
    rule_files: Tuple[Path, ...] = ()
    rejected_files: Tuple[Path, ...] = ()

    @property
    def file_count(self) -> int:
        return len(self.rule_files)

    def scan_data(self, data: bytes, context: ExternalContext, timeout: int) -> List[EngineMatch]:
        return self.engine.scan_data(self.handle, data, context, timeout)

    def scan_process(self, pid: int, timeout: int) -> List[EngineMatch]:
        return self.engine.scan_process(self.handle, pid, timeout)


class RuleCompiler:
    """Builds a CompiledRuleSet from a directory of rule files."""

    def __init__(self, engine: PatternEngine, logger: Optional[logging.Logger] = None):
        self.engine = engine
        self.logger = logger or logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def list_rule_files(self, rule_dir: Union[str, Path]) -> List[Path]:
        rule_dir = Path(rule_dir)
        try:
            entries = sorted(rule_dir.iterdir())
        except OSError as e:
            raise RuleCompilationError(f"Unable to read rule directory {rule_dir}: {e}") from e
        return [
            p for p in entries
            if p.suffix.lower() in RULE_EXTENSIONS and p.is_file()
        ]

    def compile_all(self, rule_dir: Union[str, Path]) -> CompiledRuleSet:
        """Test-compile each rule file, then compile the survivors as one set.

        Files that fail on their own are logged and left out. Failure of the
        composite set (e.g. the same rule name in two files) raises
        RuleCompilationError.
        """
        accepted: List[Path] = []
        rejected: List[Path] = []
        sources: List[str] = []

        for rule_file in self.list_rule_files(rule_dir):
            self.logger.debug(f"Reading rule file {rule_file} ...")
            try:
                source = rule_file.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                self.logger.error(f"Cannot read rule file {rule_file}. Ignoring file. ERROR: {e}")
                rejected.append(rule_file)
                continue

            try:
                self.engine.compile(source)
            except EngineError as e:
                self.logger.error(f"Cannot compile rule file {rule_file}. Ignoring file. ERROR: {e}")
                rejected.append(rule_file)
                continue

            self.logger.debug(f"Successfully compiled rule file {rule_file} - adding it to the big set")
            accepted.append(rule_file)
            sources.append(source)

        if not accepted:
            self.logger.warning(f"No usable rule files found in {rule_dir}")

        try:
            handle = self.engine.compile("\n".join(sources))
        except EngineError as e:
            raise RuleCompilationError(f"Error compiling the composed rule set: {e}") from e

        self.logger.info(f"Successfully compiled {len(accepted)} rule files into a big set")
        return CompiledRuleSet(
            engine=self.engine,
            handle=handle,
            rule_files=tuple(accepted),
            rejected_files=tuple(rejected),
        )
