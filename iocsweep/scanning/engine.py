"""Capability interface for the external pattern-matching engine.

The orchestrators never talk to a rule library directly. They compile
sources and run scans through a PatternEngine, so the engine can be swapped
or replaced by an in-memory fake in tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .models import ExternalContext

# Must match the fields of ExternalContext.
EXTERNAL_VARIABLES: Tuple[str, ...] = ("filename", "filepath", "extension", "filetype", "owner")


@dataclass(frozen=True)
class EngineMatch:
    """A rule hit reported by the engine."""

    rule: str
    namespace: str = "default"
    tags: Tuple[str, ...] = ()
    meta: Dict[str, Any] = field(default_factory=dict)


class PatternEngine(ABC):
    """Compile rule sources and scan buffers or process memory.

    Implementations raise EngineError for compile and scan failures and
    EngineTimeoutError when a scan runs out of time.
    """

    name: str = "engine"

    @abstractmethod
    def compile(self, source: str) -> Any:
        """Compile rule source into an opaque handle.

        Every name in EXTERNAL_VARIABLES must be declared (as an empty
        string) so rules may reference them.
        """

    @abstractmethod
    def scan_data(
        self,
        compiled: Any,
        data: bytes,
        context: ExternalContext,
        timeout: int,
    ) -> List[EngineMatch]:
        """Scan a content buffer with the file's external variables set."""

    @abstractmethod
    def scan_process(self, compiled: Any, pid: int, timeout: int) -> List[EngineMatch]:
        """Scan the memory of a running process."""
