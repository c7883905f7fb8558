"""Pydantic v2 models for the IOC scanning subsystem."""

import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_MATCHES = 100


def default_excluded_dirs() -> Tuple[str, ...]:
    """Pseudo filesystems that are never walked on this platform."""
    if sys.platform.startswith("linux"):
        return ("/proc", "/sys", "/dev", "/run")
    if sys.platform == "darwin":
        return ("/dev",)
    return ()


class HashType(str, Enum):
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    UNKNOWN = "unknown"


class MatchKind(str, Enum):
    HASH = "hash"
    PATTERN = "pattern"


class SubjectType(str, Enum):
    FILE = "file"
    PROCESS = "process"


class ScanModule(str, Enum):
    FILE_SCAN = "FileScan"
    PROCESS_CHECK = "ProcessCheck"


class ScanStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ScanConfig(BaseModel):
    """Scan behaviour shared read-only by both orchestrators."""

    model_config = ConfigDict(frozen=True)

    max_file_size: int = Field(default=10_000_000, ge=0)
    show_access_errors: bool = False
    scan_all_types: bool = False
    max_matches: int = Field(default=DEFAULT_MAX_MATCHES, ge=1)
    file_timeout: int = Field(default=10, ge=1)
    process_timeout: int = Field(default=30, ge=1)
    workers: int = Field(default=1, ge=1)
    excluded_dirs: Tuple[str, ...] = Field(default_factory=default_excluded_dirs)


class HashIndicator(BaseModel):
    """A known-bad hash loaded from the indicator file."""

    model_config = ConfigDict(frozen=True)

    hash_type: HashType
    hash_value: str
    description: str
    score: int = Field(default=100, ge=0)


class ExternalContext(BaseModel):
    """File metadata exposed to rule conditions as external variables."""

    model_config = ConfigDict(frozen=True)

    filename: str = ""
    filepath: str = ""
    filetype: str = ""
    extension: str = ""
    owner: str = ""  # not populated yet

    def as_externals(self) -> Dict[str, str]:
        return {
            "filename": self.filename,
            "filepath": self.filepath,
            "extension": self.extension,
            "filetype": self.filetype,
            "owner": self.owner,
        }


class SampleInfo(BaseModel):
    """Hashes and UTC timestamps of a scanned file."""

    model_config = ConfigDict(frozen=True)

    md5: str
    sha1: str
    sha256: str
    atime: str
    mtime: str
    ctime: str


class Match(BaseModel):
    """One reason an item was flagged."""

    model_config = ConfigDict(frozen=True)

    kind: MatchKind
    message: str
    score: int = Field(ge=0)
    reference: str = ""


class Finding(BaseModel):
    """Aggregated result for one scanned file or process with at least one match."""

    subject_type: SubjectType
    path: Optional[str] = None
    pid: Optional[int] = None
    process_name: Optional[str] = None
    sample_info: Optional[SampleInfo] = None
    matches: List[Match] = Field(default_factory=list)
    total_score: int = 0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def subject(self) -> str:
        if self.subject_type == SubjectType.FILE:
            return self.path or ""
        return f"{self.process_name} ({self.pid})"

    @property
    def match_count(self) -> int:
        return len(self.matches)


class ScanStats(BaseModel):
    """Counters and timing for one module run."""

    module: ScanModule
    status: ScanStatus = ScanStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    scanned: int = 0
    skipped: int = 0
    errors: int = 0
    findings: int = 0
    max_score: int = 0
    error_message: Optional[str] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None


class SweepResult(BaseModel):
    """Aggregated result of a full sweep over the active modules."""

    target: str
    status: ScanStatus = ScanStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    module_results: List[ScanStats] = Field(default_factory=list)

    @property
    def total_findings(self) -> int:
        return sum(r.findings for r in self.module_results)

    @property
    def total_errors(self) -> int:
        return sum(r.errors for r in self.module_results)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None
