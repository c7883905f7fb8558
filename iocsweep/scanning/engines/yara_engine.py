"""YARA implementation of the pattern engine (yara-python)."""

from typing import Any, List

import yara

from ..engine import EXTERNAL_VARIABLES, EngineMatch, PatternEngine
from ..errors import EngineError, EngineTimeoutError
from ..models import ExternalContext


class YaraEngine(PatternEngine):
    """Compiles YARA source and scans buffers and process memory."""

    name = "yara"

    def compile(self, source: str) -> Any:
        externals = {name: "" for name in EXTERNAL_VARIABLES}
        try:
            return yara.compile(source=source, externals=externals)
        except yara.Error as e:
            raise EngineError(str(e)) from e

    def scan_data(
        self,
        compiled: Any,
        data: bytes,
        context: ExternalContext,
        timeout: int,
    ) -> List[EngineMatch]:
        try:
            matches = compiled.match(
                data=bytes(data),
                externals=context.as_externals(),
                timeout=timeout,
            )
        except yara.TimeoutError as e:
            raise EngineTimeoutError(f"scan timed out after {timeout}s") from e
        except yara.Error as e:
            raise EngineError(str(e)) from e
        return [self._convert(m) for m in matches]

    def scan_process(self, compiled: Any, pid: int, timeout: int) -> List[EngineMatch]:
        try:
            matches = compiled.match(pid=pid, timeout=timeout)
        except yara.TimeoutError as e:
            raise EngineTimeoutError(f"process scan timed out after {timeout}s") from e
        except yara.Error as e:
            raise EngineError(str(e)) from e
        return [self._convert(m) for m in matches]

    @staticmethod
    def _convert(match: Any) -> EngineMatch:
        return EngineMatch(
            rule=match.rule,
            namespace=getattr(match, "namespace", "default"),
            tags=tuple(getattr(match, "tags", ()) or ()),
            meta=dict(getattr(match, "meta", {}) or {}),
        )
