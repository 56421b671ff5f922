"""
Error types raised by the identification pipeline.

Every failure aborts the whole fit; no partial model is returned.
"""


class IMDynamicsError(Exception):
    """Base class for all identification errors."""


class InvalidInputError(IMDynamicsError, ValueError):
    """Malformed trajectory set, inconsistent dimensions or bad overrides."""


class ConfigurationError(IMDynamicsError, ValueError):
    """Option combination that cannot produce a well-posed fit."""


class NumericalError(IMDynamicsError, ArithmeticError):
    """Singular, ill-conditioned or non-finite numerical result."""
