"""Scan orchestrators for the filesystem and running processes."""

from .file_scanner import FileScanner, default_scan_root
from .process_scanner import ProcessRef, ProcessScanner

__all__ = ["FileScanner", "ProcessRef", "ProcessScanner", "default_scan_root"]
