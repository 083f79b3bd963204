"""
Exception and warning types raised by poremodel.

ModelValidationError subclasses ValueError and Fast5FormatError subclasses
OSError, so callers that already handle the builtin classes keep working.
"""


class PoreModelError(Exception):
    """Base class for all poremodel errors."""


class ModelValidationError(PoreModelError, ValueError):
    """A model table is malformed or incomplete."""

    def __init__(self, message: str, source: str = None, line_number: int = None):
        self.source = source
        self.line_number = line_number
        location = ''
        if source is not None:
            location = f"{source}:{line_number}: " if line_number is not None else f"{source}: "
        super().__init__(location + message)


class NumericAnomalyError(PoreModelError, ArithmeticError):
    """Baking produced non-finite derived parameters."""

    def __init__(self, message: str, anomalous_ranks=()):
        self.anomalous_ranks = tuple(int(r) for r in anomalous_ranks)
        super().__init__(message)


class Fast5FormatError(PoreModelError, OSError):
    """A fast5 file is missing the groups or attributes a pore model needs."""


class NumericAnomalyWarning(RuntimeWarning):
    """Emitted when baking produces non-finite values and strict mode is off."""
