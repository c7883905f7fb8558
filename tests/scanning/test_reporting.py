"""Tests for finding sinks."""

import json
import logging

from iocsweep.scanning.models import Finding, Match, MatchKind, SampleInfo, SubjectType
from iocsweep.scanning.reporting import JsonLinesSink, LogSink, MemorySink, MultiSink, format_reasons


def _file_finding():
    return Finding(
        subject_type=SubjectType.FILE,
        path="/tmp/sample.exe",
        sample_info=SampleInfo(
            md5="m", sha1="s1", sha256="s256",
            atime="2024-01-01T00:00:00+00:00",
            mtime="2024-01-02T00:00:00+00:00",
            ctime="2024-01-03T00:00:00+00:00",
        ),
        matches=[
            Match(kind=MatchKind.HASH, message="HASH match with IOC HASH: s256 DESC: test", score=100),
            Match(kind=MatchKind.PATTERN, message="YARA match with rule R", score=60),
        ],
        total_score=160,
    )


class TestLogSink:
    def test_file_line(self, caplog):
        caplog.set_level(logging.DEBUG, logger="iocsweep")
        LogSink().emit(_file_finding())
        (record,) = caplog.records
        message = record.getMessage()
        assert record.levelno == logging.WARNING
        assert message.startswith("File match found FILE: /tmp/sample.exe MD5: m SHA1: s1 SHA256: s256")
        assert "CREATED: 2024-01-03T00:00:00+00:00" in message
        assert "SCORE: 160" in message
        assert "YARA match with rule R (SCORE: 60)" in message

    def test_process_line(self, caplog):
        caplog.set_level(logging.DEBUG, logger="iocsweep")
        LogSink().emit(Finding(
            subject_type=SubjectType.PROCESS, pid=9, process_name="evil",
            matches=[Match(kind=MatchKind.PATTERN, message="YARA match with rule X", score=75)],
            total_score=75,
        ))
        (record,) = caplog.records
        assert record.getMessage().startswith("Process with matches found PID: 9 PROCESS: evil SCORE: 75")


class TestFormatReasons:
    def test_brackets(self):
        assert format_reasons(Finding(subject_type=SubjectType.FILE)) == "[]"


class TestJsonLinesSink:
    def test_writes_one_object_per_finding(self, tmp_path):
        path = tmp_path / "out" / "findings.jsonl"
        sink = JsonLinesSink(path)
        sink.emit(_file_finding())
        sink.emit(_file_finding())
        sink.close()
        lines = path.read_text().splitlines()
        assert len(lines) == 2
        data = json.loads(lines[0])
        assert data["path"] == "/tmp/sample.exe"
        assert data["total_score"] == 160
        assert data["matches"][0]["kind"] == "hash"

    def test_close_is_idempotent(self, tmp_path):
        sink = JsonLinesSink(tmp_path / "f.jsonl")
        sink.close()
        sink.close()


class TestMultiSink:
    def test_fans_out(self):
        a, b = MemorySink(), MemorySink()
        MultiSink([a, b]).emit(_file_finding())
        assert len(a) == 1
        assert len(b) == 1
