"""File admission policy: what gets opened, hashed and passed to the engine.

The decision is a pure function of the regular-file flag, the on-disk size,
the extension and the sniffed format. Format sniffing reads a few header
bytes and compares them against a table of magic signatures.
"""

import os
from enum import Enum
from typing import NamedTuple, Optional, Tuple


class FileFormat(NamedTuple):
    name: str
    short_name: str


class SkipReason(str, Enum):
    NOT_REGULAR = "not_regular_file"
    TOO_LARGE = "too_large"
    IRRELEVANT_TYPE = "irrelevant_type"


ARBITRARY_BINARY = FileFormat("Arbitrary Binary Data", "BIN")
EMPTY = FileFormat("Empty", "EMPTY")

WINDOWS_EXECUTABLE = FileFormat("Windows Executable", "EXE")
ELF = FileFormat("Executable and Linkable Format", "ELF")
ZIP = FileFormat("ZIP", "ZIP")
DEBIAN_PACKAGE = FileFormat("Debian Binary Package", "DEB")
CHROME_EXTENSION = FileFormat("Google Chrome Extension", "CRX")
ISO_9660 = FileFormat("ISO 9660", "ISO")
COMPILED_HTML_HELP = FileFormat("Microsoft Compiled HTML Help", "CHM")
PCAP = FileFormat("PCAP Dump", "PCAP")
PCAPNG = FileFormat("PCAP Next Generation Dump", "PCAPNG")
WINDOWS_SHORTCUT = FileFormat("Windows Shortcut", "LNK")
PDF = FileFormat("Portable Document Format", "PDF")
COMPOUND_FILE = FileFormat("Compound File Binary", "CFB")
GZIP = FileFormat("Gzip", "GZ")
MACH_O = FileFormat("Mach-O", "MACHO")

# Longer signatures first; the first match wins.
MAGIC_SIGNATURES: Tuple[Tuple[bytes, FileFormat], ...] = (
    (b"!<arch>\ndebian-binary", DEBIAN_PACKAGE),
    (b"\x4c\x00\x00\x00\x01\x14\x02\x00", WINDOWS_SHORTCUT),
    (b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1", COMPOUND_FILE),
    (b"ITSF\x03\x00\x00\x00", COMPILED_HTML_HELP),
    (b"\x0a\x0d\x0d\x0a", PCAPNG),
    (b"\xd4\xc3\xb2\xa1", PCAP),
    (b"\xa1\xb2\xc3\xd4", PCAP),
    (b"\x4d\x3c\xb2\xa1", PCAP),
    (b"\xa1\xb2\x3c\x4d", PCAP),
    (b"\x7fELF", ELF),
    (b"PK\x03\x04", ZIP),
    (b"PK\x05\x06", ZIP),
    (b"PK\x07\x08", ZIP),
    (b"Cr24", CHROME_EXTENSION),
    (b"%PDF", PDF),
    (b"\xfe\xed\xfa\xce", MACH_O),
    (b"\xfe\xed\xfa\xcf", MACH_O),
    (b"\xce\xfa\xed\xfe", MACH_O),
    (b"\xcf\xfa\xed\xfe", MACH_O),
    (b"\x1f\x8b", GZIP),
    (b"MZ", WINDOWS_EXECUTABLE),
)

# ISO 9660 volume descriptors carry "CD001" at one of these offsets.
ISO_9660_OFFSETS: Tuple[int, ...] = (0x8001, 0x8801, 0x9001)
ISO_9660_MAGIC = b"CD001"

HEADER_SIZE = 32

RELEVANT_EXTENSIONS = frozenset({
    ".exe", ".dll", ".bat", ".ps1", ".asp", ".aspx", ".jsp", ".jspx",
    ".php", ".plist", ".sh", ".vbs", ".js", ".dmp",
})

# Java Class is left out on purpose, too many other types sniff as it.
RELEVANT_FORMATS = frozenset({
    DEBIAN_PACKAGE.name,
    ELF.name,
    CHROME_EXTENSION.name,
    ISO_9660.name,
    COMPILED_HTML_HELP.name,
    PCAP.name,
    PCAPNG.name,
    WINDOWS_EXECUTABLE.name,
    WINDOWS_SHORTCUT.name,
    ZIP.name,
})


def detect_format(header: bytes) -> FileFormat:
    """Return the format whose magic the header starts with."""
    if not header:
        return EMPTY
    for magic, file_format in MAGIC_SIGNATURES:
        if header.startswith(magic):
            return file_format
    return ARBITRARY_BINARY


def sniff_file_format(path: str) -> FileFormat:
    """Sniff the format of a file from its content.

    Unreadable files are reported as arbitrary binary data; the caller will
    hit (and report) the same access problem when it opens the file.
    """
    try:
        with open(path, "rb") as f:
            header = f.read(HEADER_SIZE)
            file_format = detect_format(header)
            if file_format is ARBITRARY_BINARY:
                for offset in ISO_9660_OFFSETS:
                    f.seek(offset)
                    if f.read(len(ISO_9660_MAGIC)) == ISO_9660_MAGIC:
                        return ISO_9660
            return file_format
    except OSError:
        return ARBITRARY_BINARY


def file_extension(path: str) -> str:
    """Lowercased extension including the leading dot, or ''."""
    return os.path.splitext(path)[1].lower()


def size_on_disk(stat_result: os.stat_result) -> int:
    """Allocated size where the platform reports blocks, else the apparent size."""
    blocks = getattr(stat_result, "st_blocks", None)
    if blocks is None:
        return stat_result.st_size
    return blocks * 512


def check_entry(is_regular_file: bool, size: int, max_file_size: int) -> Optional[SkipReason]:
    if not is_regular_file:
        return SkipReason.NOT_REGULAR
    if size > max_file_size:
        return SkipReason.TOO_LARGE
    return None


def check_type(extension: str, file_format: FileFormat, scan_all_types: bool) -> Optional[SkipReason]:
    if scan_all_types:
        return None
    if extension.lower() in RELEVANT_EXTENSIONS:
        return None
    if file_format.name in RELEVANT_FORMATS:
        return None
    return SkipReason.IRRELEVANT_TYPE


def admit(
    is_regular_file: bool,
    size: int,
    extension: str,
    file_format: FileFormat,
    max_file_size: int,
    scan_all_types: bool,
) -> Optional[SkipReason]:
    """Full admission decision; None means the file gets scanned."""
    return check_entry(is_regular_file, size, max_file_size) or check_type(
        extension, file_format, scan_all_types
    )
