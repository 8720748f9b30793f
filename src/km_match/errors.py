from __future__ import annotations


class KMError(Exception):
    """Base class for errors raised by km_match."""


class InvalidInputError(KMError, ValueError):
    """
    The weight matrix or its declared size cannot be matched.

    Raised before any solver state is built, so no partial result exists.
    """


class MatrixFormatError(InvalidInputError):
    """A matrix file could not be parsed."""


class InvariantViolation(KMError, AssertionError):
    """An internal solver invariant does not hold. Indicates a defect."""
