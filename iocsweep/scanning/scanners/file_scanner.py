"""File scan orchestrator: walks a directory tree and checks every admitted file
against the hash indicators and the compiled rule set."""

import logging
import os
from typing import Iterator, Optional

from ...log import TRACE
from ..aggregator import FILE_PATTERN_SCORE, MatchCollector
from ..content import FileHashes, build_sample_info, compute_hashes, mapped_content
from ..errors import EngineError
from ..filters import check_entry, check_type, file_extension, size_on_disk, sniff_file_format
from ..indicators import IndicatorStore
from ..models import (
    ExternalContext,
    Finding,
    HashType,
    Match,
    MatchKind,
    ScanConfig,
    ScanModule,
    SubjectType,
)
from ..reporting import FindingSink
from ..rules import CompiledRuleSet
from ..scanner_base import ItemOutcome, ScannerBase


def default_scan_root() -> str:
    return "C:\\" if os.name == "nt" else "/"


class FileScanner(ScannerBase):
    """Hash and pattern scanning of files on the local filesystem."""

    def __init__(
        self,
        rules: CompiledRuleSet,
        indicators: IndicatorStore,
        scan_config: ScanConfig,
        sink: Optional[FindingSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(rules, scan_config, sink, logger)
        self.indicators = indicators
        self._excluded = {os.path.normcase(os.path.abspath(d)) for d in scan_config.excluded_dirs}

    @property
    def module(self) -> ScanModule:
        return ScanModule.FILE_SCAN

    def iter_subjects(self, target: Optional[str]) -> Iterator[str]:
        """Yield every non-directory entry below ``target``.

        Symlinked directories are listed but never descended into. A target
        that is not a directory is yielded on its own.
        """
        root = target or default_scan_root()
        if not os.path.isdir(root):
            yield root
            return

        def on_error(error: OSError) -> None:
            self.report_access_error(f"Cannot list directory DIR: {error.filename} ERROR: {error}")

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error, followlinks=False):
            kept = []
            for name in dirnames:
                full = os.path.join(dirpath, name)
                if os.path.normcase(os.path.abspath(full)) in self._excluded:
                    self.logger.debug(f"Skipping excluded directory DIR: {full}")
                elif os.path.islink(full):
                    self.logger.log(TRACE, f"Skipped element that isn't a file ELEMENT: {full} TYPE: symlink")
                else:
                    kept.append(name)
            dirnames[:] = kept
            for name in filenames:
                yield os.path.join(dirpath, name)

    def scan_subject(self, path: str) -> ItemOutcome:
        # Type filter
        is_regular = os.path.isfile(path)
        if not is_regular:
            self.logger.log(TRACE, f"Skipped element that isn't a file ELEMENT: {path}")
            return ItemOutcome.SKIPPED

        try:
            stat_result = os.stat(path)
        except OSError as e:
            self.report_access_error(f"Cannot read metadata FILE: {path} ERROR: {e}")
            return ItemOutcome.ERROR

        # Size filter, before anything opens the file
        size = size_on_disk(stat_result)
        if check_entry(is_regular, size, self.scan_config.max_file_size):
            self.logger.log(
                TRACE,
                f"Skipping file due to size FILE: {path} SIZE: {size} "
                f"MAX_FILE_SIZE: {self.scan_config.max_file_size}",
            )
            return ItemOutcome.SKIPPED

        # Extension / format filter
        extension = file_extension(path)
        file_format = sniff_file_format(path)
        if check_type(extension, file_format, self.scan_config.scan_all_types):
            self.logger.log(
                TRACE,
                f"Skipping file due to extension or type FILE: {path} "
                f"EXT: {extension!r} TYPE: {file_format.name!r}",
            )
            return ItemOutcome.SKIPPED

        self.logger.debug(f"Scanning file {path} TYPE: {file_format.name!r}")
        collector = MatchCollector(self.scan_config.max_matches)

        try:
            with mapped_content(path) as content:
                hashes = compute_hashes(content)
                self.logger.log(
                    TRACE,
                    f"Hashes of FILE: {path} SHA256: {hashes.sha256} "
                    f"SHA1: {hashes.sha1} MD5: {hashes.md5}",
                )
                self._match_hashes(hashes, collector)

                context = ExternalContext(
                    filename=os.path.basename(path),
                    filepath=os.path.dirname(path),
                    filetype=file_format.short_name.upper(),
                    extension=extension,
                    owner="",
                )
                self.logger.log(TRACE, f"Passing external variables to the scan EXT_VARS: {context!r}")
                self._match_rules(path, content, context, collector)
        except (OSError, ValueError) as e:
            self.report_access_error(f"Cannot access file FILE: {path} ERROR: {e}")
            return ItemOutcome.ERROR

        if not collector:
            return ItemOutcome.CLEAN

        finding = Finding(
            subject_type=SubjectType.FILE,
            path=path,
            sample_info=build_sample_info(hashes, stat_result),
            matches=collector.matches,
            total_score=collector.total_score,
        )
        if collector.dropped:
            self.logger.debug(f"Dropped {collector.dropped} matches over the limit FILE: {path}")
        self.emit_finding(finding)
        return ItemOutcome.MATCHED

    def _match_hashes(self, hashes: FileHashes, collector: MatchCollector) -> None:
        for hash_type, value in (
            (HashType.MD5, hashes.md5),
            (HashType.SHA1, hashes.sha1),
            (HashType.SHA256, hashes.sha256),
        ):
            for indicator in self.indicators.find(hash_type, value):
                collector.add(
                    Match(
                        kind=MatchKind.HASH,
                        message=f"HASH match with IOC HASH: {indicator.hash_value} DESC: {indicator.description}",
                        score=indicator.score,
                        reference=indicator.description,
                    )
                )

    def _match_rules(self, path: str, content, context: ExternalContext, collector: MatchCollector) -> None:
        try:
            engine_matches = self.rules.scan_data(content, context, self.scan_config.file_timeout)
        except EngineError as e:
            self.report_access_error(f"Error while scanning file FILE: {path} ERROR: {e}")
            return
        for engine_match in engine_matches:
            self.logger.debug(f"MATCH FOUND FILE: {path} RULE: {engine_match.rule}")
            collector.add(
                Match(
                    kind=MatchKind.PATTERN,
                    message=f"YARA match with rule {engine_match.rule}",
                    score=FILE_PATTERN_SCORE,
                    reference=engine_match.rule,
                )
            )
