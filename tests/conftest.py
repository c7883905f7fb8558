"""Shared test fixtures for the iocsweep test suite."""

import logging

import pytest
from pathlib import Path

from iocsweep.scanning.models import ScanConfig

from .scanning.engine_helpers import FakeEngine

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
EMPTY_MD5 = "d41d8cd98f00b204e9800998ecf8427e"
EMPTY_SHA1 = "da39a3ee5e6b4b0d3255bfef95601890afd80709"


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers and propagation changes made by setup_logging()."""
    logger = logging.getLogger("iocsweep")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def scan_config():
    """Default scan settings with no excluded directories."""
    return ScanConfig(excluded_dirs=())


@pytest.fixture
def signature_dir(tmp_path):
    """Signature directory with one hash IOC and two valid rule files."""
    sig = tmp_path / "signatures"
    (sig / "iocs").mkdir(parents=True)
    (sig / "yara").mkdir()
    (sig / "iocs" / "hash-iocs.txt").write_text(
        "# hash;description\n"
        f"{EMPTY_SHA256};test\n"
    )
    (sig / "yara" / "webshells.yar").write_text('rule Webshell_Eval contains "eval($_POST"\n')
    (sig / "yara" / "generic.yar").write_text('rule Suspicious_Exe where filetype == "EXE"\n')
    return sig


@pytest.fixture
def scan_dir(tmp_path):
    """Directory to scan."""
    d = tmp_path / "target"
    d.mkdir()
    return d


def write_file(directory: Path, name: str, content: bytes = b"") -> Path:
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path
