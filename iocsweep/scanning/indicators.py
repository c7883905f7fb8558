"""Hash indicator store: loads the semicolon-delimited IOC file and indexes it."""

import csv
import logging
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from ..log import TRACE
from .errors import IndicatorLoadError
from .models import HashIndicator, HashType

logger = logging.getLogger(__name__)

# Scores are not read from the indicator file; every record gets this one.
DEFAULT_INDICATOR_SCORE = 100

HASH_LENGTHS: Dict[int, HashType] = {
    32: HashType.MD5,
    40: HashType.SHA1,
    64: HashType.SHA256,
}


def classify_hash(hash_value: str) -> HashType:
    """Return the hash type implied by the length of a hex string."""
    return HASH_LENGTHS.get(len(hash_value), HashType.UNKNOWN)


class IndicatorStore:
    """Read-only index of hash indicators keyed by (hash_type, hash_value).

    Several indicators may share a hash value with different descriptions;
    lookups return all of them in file order.
    """

    def __init__(self, indicators: Iterable[HashIndicator] = ()):
        index: Dict[Tuple[HashType, str], List[HashIndicator]] = {}
        count = 0
        for indicator in indicators:
            key = (indicator.hash_type, indicator.hash_value.lower())
            index.setdefault(key, []).append(indicator)
            count += 1
        self._index: Dict[Tuple[HashType, str], Tuple[HashIndicator, ...]] = {
            key: tuple(values) for key, values in index.items()
        }
        self._count = count

    @classmethod
    def load(cls, path: Union[str, Path]) -> "IndicatorStore":
        """Load a hash indicator file.

        Records are ``hash;description[;ignored...]``. Comment lines start
        with ``#``. Malformed rows are skipped with a debug diagnostic; only
        failing to read the file at all raises IndicatorLoadError.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
                indicators = list(cls._parse(f, path))
        except OSError as e:
            raise IndicatorLoadError(f"Unable to read hash IOC file {path}: {e}") from e

        store = cls(indicators)
        logger.info(f"Loaded {len(store)} hash IOCs from {path}")
        return store

    @staticmethod
    def _parse(lines: Iterable[str], source: Path) -> Iterator[HashIndicator]:
        reader = csv.reader(lines, delimiter=";", quoting=csv.QUOTE_NONE)
        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except csv.Error as e:
                logger.debug(
                    f"Cannot read line {reader.line_num} in hash IOC file {source} "
                    f"(which can be okay): {e}"
                )
                continue

            if not row or not "".join(row).strip():
                continue
            if row[0].lstrip().startswith("#"):
                continue
            if len(row) < 2:
                logger.debug(
                    f"Skipping malformed line {reader.line_num} in hash IOC file {source}: {row!r}"
                )
                continue

            hash_value = row[0].strip().lower()
            if not hash_value:
                logger.debug(f"Skipping line {reader.line_num} with empty hash in {source}")
                continue

            hash_type = classify_hash(hash_value)
            description = row[1].strip()
            logger.log(
                TRACE,
                f"Read hash IOC HASH: {hash_value} DESC: {description} TYPE: {hash_type.value}",
            )
            yield HashIndicator(
                hash_type=hash_type,
                hash_value=hash_value,
                description=description,
                score=DEFAULT_INDICATOR_SCORE,
            )

    def find(self, hash_type: HashType, hash_value: str) -> Tuple[HashIndicator, ...]:
        """Return every indicator stored for this hash, case-insensitively."""
        return self._index.get((hash_type, hash_value.strip().lower()), ())

    def counts(self) -> Dict[HashType, int]:
        counter: Counter = Counter()
        for (hash_type, _), values in self._index.items():
            counter[hash_type] += len(values)
        return {hash_type: counter.get(hash_type, 0) for hash_type in HashType}

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[HashIndicator]:
        for values in self._index.values():
            yield from values

    def __repr__(self) -> str:
        return f"IndicatorStore(count={self._count})"


def load_indicators(path: Union[str, Path], log: Optional[logging.Logger] = None) -> IndicatorStore:
    """Load the store and log a per-type summary."""
    store = IndicatorStore.load(path)
    counts = store.counts()
    (log or logger).info(
        f"Hash IOCs by type MD5: {counts[HashType.MD5]} SHA1: {counts[HashType.SHA1]} "
        f"SHA256: {counts[HashType.SHA256]} UNKNOWN: {counts[HashType.UNKNOWN]}"
    )
    return store
