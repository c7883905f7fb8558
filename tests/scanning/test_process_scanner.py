"""Tests for the ProcessScanner orchestrator with a patched process table."""

import logging
import os
import pytest

from iocsweep.scanning.models import MatchKind, ScanConfig, SubjectType
from iocsweep.scanning.reporting import MemorySink
from iocsweep.scanning.scanner_base import ItemOutcome
from iocsweep.scanning.scanners.process_scanner import ProcessRef, ProcessScanner

from .engine_helpers import FakeEngine, compile_rules


class FakeProcess:
    def __init__(self, pid, name):
        self.info = {"pid": pid, "name": name}


@pytest.fixture
def process_table(monkeypatch):
    """Replace psutil.process_iter with a fixed table."""
    table = [FakeProcess(101, "bash"), FakeProcess(202, "evil"), FakeProcess(303, None)]

    def fake_process_iter(attrs=None):
        return iter(table)

    monkeypatch.setattr(
        "iocsweep.scanning.scanners.process_scanner.psutil.process_iter",
        fake_process_iter,
    )
    return table


def _scanner(engine, sink=None, **config):
    return ProcessScanner(
        rules=compile_rules(engine),
        scan_config=ScanConfig(excluded_dirs=(), **config),
        sink=sink if sink is not None else MemorySink(),
    )


class TestProcessScanner:
    def test_single_matching_process(self, process_table):
        engine = FakeEngine(process_matches={202: ["Mimikatz_Memory"]})
        sink = MemorySink()

        stats = _scanner(engine, sink).run()

        assert stats.findings == 1
        assert stats.scanned == 3
        (finding,) = sink.findings
        assert finding.subject_type == SubjectType.PROCESS
        assert finding.pid == 202
        assert finding.process_name == "evil"
        assert finding.sample_info is None
        assert [(m.kind, m.reference, m.score) for m in finding.matches] == [
            (MatchKind.PATTERN, "Mimikatz_Memory", 75)
        ]
        assert finding.total_score == 75

    def test_process_timeout_passed(self, process_table):
        engine = FakeEngine()
        _scanner(engine, process_timeout=7).run()
        assert {timeout for _, timeout in engine.process_scans} == {7}

    def test_missing_name_is_empty_string(self, process_table):
        engine = FakeEngine(process_matches={303: ["X"]})
        sink = MemorySink()
        _scanner(engine, sink).run()
        assert sink.findings[0].process_name == ""

    def test_access_error_is_counted_and_scan_continues(self, process_table, caplog):
        caplog.set_level(logging.DEBUG, logger="iocsweep")
        engine = FakeEngine(process_matches={202: ["Rule"]}, process_errors=[101])
        sink = MemorySink()

        stats = _scanner(engine, sink).run()

        assert stats.errors == 1
        assert len(sink.findings) == 1
        record = next(r for r in caplog.records if "Error while scanning process memory" in r.getMessage())
        assert record.levelno == logging.DEBUG
        assert "PID: 101" in record.getMessage()

    def test_access_error_shown(self, process_table, caplog):
        caplog.set_level(logging.DEBUG, logger="iocsweep")
        engine = FakeEngine(process_errors=[101])
        _scanner(engine, show_access_errors=True).run()
        record = next(r for r in caplog.records if "Error while scanning process memory" in r.getMessage())
        assert record.levelno == logging.ERROR

    def test_own_process_skipped(self):
        engine = FakeEngine(process_matches={os.getpid(): ["Rule"]})
        scanner = _scanner(engine)
        outcome = scanner.scan_subject(ProcessRef(pid=os.getpid(), name="python"))
        assert outcome == ItemOutcome.SKIPPED
        assert engine.process_scans == []

    def test_match_cap(self, process_table):
        engine = FakeEngine(process_matches={202: ["A", "B", "C"]})
        sink = MemorySink()
        _scanner(engine, sink, max_matches=2).run()
        (finding,) = sink.findings
        assert [m.reference for m in finding.matches] == ["A", "B"]
        assert finding.total_score == 150

    def test_process_ref_str(self):
        assert str(ProcessRef(5, "init")) == "PID: 5 PROCESS: init"
