"""Finding sinks. Every sink may be called from several scan workers at once."""

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .models import Finding, SubjectType


class FindingSink(ABC):
    """Receives one Finding per flagged file or process."""

    @abstractmethod
    def emit(self, finding: Finding) -> None:
        ...

    def close(self) -> None:
        pass


def format_reasons(finding: Finding) -> str:
    return "[" + ", ".join(
        f"{m.message} (SCORE: {m.score})" for m in finding.matches
    ) + "]"


class LogSink(FindingSink):
    """Writes a single WARNING line per finding."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def emit(self, finding: Finding) -> None:
        if finding.subject_type == SubjectType.FILE:
            info = finding.sample_info
            details = ""
            if info is not None:
                details = (
                    f" MD5: {info.md5} SHA1: {info.sha1} SHA256: {info.sha256}"
                    f" CREATED: {info.ctime} MODIFIED: {info.mtime} ACCESSED: {info.atime}"
                )
            self.logger.warning(
                f"File match found FILE: {finding.path}{details} "
                f"SCORE: {finding.total_score} REASONS: {format_reasons(finding)}"
            )
        else:
            self.logger.warning(
                f"Process with matches found PID: {finding.pid} PROCESS: {finding.process_name} "
                f"SCORE: {finding.total_score} REASONS: {format_reasons(finding)}"
            )


class MemorySink(FindingSink):
    """Keeps findings in memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self._findings: List[Finding] = []

    def emit(self, finding: Finding) -> None:
        with self._lock:
            self._findings.append(finding)

    @property
    def findings(self) -> List[Finding]:
        with self._lock:
            return list(self._findings)

    def __len__(self) -> int:
        with self._lock:
            return len(self._findings)


class JsonLinesSink(FindingSink):
    """Appends one JSON object per finding to a file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._handle = open(self.path, "a", encoding="utf-8")

    def emit(self, finding: Finding) -> None:
        line = finding.model_dump_json()
        with self._lock:
            self._handle.write(line + "\n")
            self._handle.flush()

    def close(self) -> None:
        with self._lock:
            if not self._handle.closed:
                self._handle.close()


class MultiSink(FindingSink):
    """Fans each finding out to several sinks."""

    def __init__(self, sinks: Iterable[FindingSink]):
        self.sinks = list(sinks)

    def emit(self, finding: Finding) -> None:
        for sink in self.sinks:
            sink.emit(finding)

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()
