"""Exception types raised by the scanning subsystem.

Load and compile errors are fatal for a sweep. Engine errors are per item
and are reported through the access-error policy of the scanners.
"""


class IocSweepError(Exception):
    """Base class for all iocsweep errors."""


class IndicatorLoadError(IocSweepError):
    """The hash indicator file could not be opened or read."""


class RuleCompilationError(IocSweepError):
    """The rule directory is unreadable or the composite rule set does not compile."""


class EngineError(IocSweepError):
    """The pattern engine failed to compile or scan."""


class EngineTimeoutError(EngineError):
    """A pattern engine scan exceeded its timeout."""
