"""In-memory pattern engine for orchestration tests.

Rule source is one rule per line:

    rule <name> contains "<literal>"
    rule <name> where <external> == "<value>"

Blank lines and lines starting with ``//`` are ignored; anything else is a
syntax error, and a rule name defined twice in one source fails to compile.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from iocsweep.scanning.engine import EXTERNAL_VARIABLES, EngineMatch, PatternEngine
from iocsweep.scanning.errors import EngineError, EngineTimeoutError
from iocsweep.scanning.models import ExternalContext
from iocsweep.scanning.rules import CompiledRuleSet

CONTAINS_RE = re.compile(r'^rule\s+(\w+)\s+contains\s+"([^"]*)"$')
WHERE_RE = re.compile(r'^rule\s+(\w+)\s+where\s+(\w+)\s*==\s*"([^"]*)"$')


class FakeRules:
    def __init__(self, rules: List[Tuple[str, str, str, str]]):
        # (name, kind, key, value)
        self.rules = rules

    @property
    def names(self) -> List[str]:
        return [r[0] for r in self.rules]


class FakeEngine(PatternEngine):
    """PatternEngine stand-in that records every call."""

    name = "fake"

    def __init__(
        self,
        process_matches: Optional[Dict[int, List[str]]] = None,
        process_errors: Iterable[int] = (),
        data_error: Optional[Exception] = None,
    ):
        self.process_matches = process_matches or {}
        self.process_errors = set(process_errors)
        self.data_error = data_error
        self.compiled_sources: List[str] = []
        self.data_scans: List[Tuple[bytes, ExternalContext, int]] = []
        self.process_scans: List[Tuple[int, int]] = []

    def compile(self, source: str) -> FakeRules:
        self.compiled_sources.append(source)
        rules: List[Tuple[str, str, str, str]] = []
        seen = set()
        for line in source.splitlines():
            line = line.strip()
            if not line or line.startswith("//"):
                continue
            m = CONTAINS_RE.match(line)
            if m:
                rule = (m.group(1), "contains", "", m.group(2))
            else:
                m = WHERE_RE.match(line)
                if not m:
                    raise EngineError(f"syntax error: {line}")
                if m.group(2) not in EXTERNAL_VARIABLES:
                    raise EngineError(f"undefined identifier \"{m.group(2)}\"")
                rule = (m.group(1), "where", m.group(2), m.group(3))
            if rule[0] in seen:
                raise EngineError(f"duplicated identifier \"{rule[0]}\"")
            seen.add(rule[0])
            rules.append(rule)
        return FakeRules(rules)

    def scan_data(self, compiled: FakeRules, data, context: ExternalContext, timeout: int) -> List[EngineMatch]:
        content = bytes(data)
        self.data_scans.append((content, context, timeout))
        if self.data_error is not None:
            raise self.data_error
        externals = context.as_externals()
        matches = []
        for name, kind, key, value in compiled.rules:
            if kind == "contains" and value.encode() in content:
                matches.append(EngineMatch(rule=name))
            elif kind == "where" and externals[key] == value:
                matches.append(EngineMatch(rule=name))
        return matches

    def scan_process(self, compiled: FakeRules, pid: int, timeout: int) -> List[EngineMatch]:
        self.process_scans.append((pid, timeout))
        if pid in self.process_errors:
            raise EngineError("could not attach to process")
        return [EngineMatch(rule=name) for name in self.process_matches.get(pid, [])]


def compile_rules(engine: FakeEngine, source: str = "") -> CompiledRuleSet:
    """Compile source directly, without a rule directory."""
    return CompiledRuleSet(engine=engine, handle=engine.compile(source))


def timeout_engine() -> FakeEngine:
    return FakeEngine(data_error=EngineTimeoutError("scan timed out after 10s"))
