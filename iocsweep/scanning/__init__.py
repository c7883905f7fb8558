"""IOC scanning subsystem.

Hash-indicator matching and rule-based pattern matching over local files
and running processes, with bounded per-item match lists and scores.
"""

from .aggregator import MatchCollector, aggregate
from .engine import EngineMatch, PatternEngine
from .errors import (
    EngineError,
    EngineTimeoutError,
    IndicatorLoadError,
    IocSweepError,
    RuleCompilationError,
)
from .indicators import IndicatorStore, classify_hash
from .models import (
    ExternalContext,
    Finding,
    HashIndicator,
    HashType,
    Match,
    MatchKind,
    SampleInfo,
    ScanConfig,
    ScanModule,
    ScanStats,
    ScanStatus,
    SubjectType,
    SweepResult,
)
from .reporting import FindingSink, JsonLinesSink, LogSink, MemorySink, MultiSink
from .rules import CompiledRuleSet, RuleCompiler
from .scanner_base import ScannerBase
from .sweep import SweepPipeline

__all__ = [
    "MatchCollector",
    "aggregate",
    "EngineMatch",
    "PatternEngine",
    "EngineError",
    "EngineTimeoutError",
    "IndicatorLoadError",
    "IocSweepError",
    "RuleCompilationError",
    "IndicatorStore",
    "classify_hash",
    "ExternalContext",
    "Finding",
    "HashIndicator",
    "HashType",
    "Match",
    "MatchKind",
    "SampleInfo",
    "ScanConfig",
    "ScanModule",
    "ScanStats",
    "ScanStatus",
    "SubjectType",
    "SweepResult",
    "FindingSink",
    "JsonLinesSink",
    "LogSink",
    "MemorySink",
    "MultiSink",
    "CompiledRuleSet",
    "RuleCompiler",
    "ScannerBase",
    "SweepPipeline",
]
