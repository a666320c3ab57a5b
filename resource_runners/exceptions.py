"""
Exception types raised by the resource runners package.

Both contract errors subclass ValueError so callers that already guard
network operations with ``except ValueError`` keep working.
"""


class RunnersError(Exception):
    """Base class for all errors raised by this package."""


class DimensionMismatch(RunnersError, ValueError):
    """
    A vector or network does not have the expected shape.

    Raised when a sensor vector's length differs from a network's input
    size, or when two networks of different shape are crossed over.
    The offending call leaves all existing state untouched.
    """


class InvalidConfiguration(RunnersError, ValueError):
    """Population or operator parameters are outside their valid range."""


class PopulationStateError(RunnersError, RuntimeError):
    """An operation was requested in a state that does not allow it."""
