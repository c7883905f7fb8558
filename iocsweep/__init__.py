"""iocsweep: endpoint IOC scanner (hash indicators and YARA rules)."""

__version__ = "2.0.0"
__all__ = ["__version__"]
