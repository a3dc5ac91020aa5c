"""
Semantic errors for the attenuation package.

Public functions never raise a bare ValueError for contract violations; they
raise one of the classes below so callers can tell malformed inputs apart from
numerical trouble.
"""

from __future__ import annotations

__all__ = [
    "AttenuationError",
    "InvalidParameters",
    "InvalidScheme",
    "IntegrationFailure",
    "DegenerateVariance",
    "NumericalStabilityError",
    "ConfigError",
]


class AttenuationError(Exception):
    """Base error for this package."""


class InvalidParameters(AttenuationError, ValueError):
    """Distribution parameters, regions or tolerances violate the contract."""


class InvalidScheme(AttenuationError, ValueError):
    """Category thresholds/labels are malformed."""


class IntegrationFailure(AttenuationError, ArithmeticError):
    """Quadrature did not converge within its evaluation budget.

    Deterministic: retrying with the same inputs fails identically. Loosen the
    tolerance or raise the budget instead.
    """


class DegenerateVariance(AttenuationError, ArithmeticError):
    """The discretized variable has (numerically) zero variance."""


class NumericalStabilityError(AttenuationError, FloatingPointError):
    """Invariant violation or numerical instability (policy-controlled)."""


class ConfigError(AttenuationError, ValueError):
    """User-fixable scenario/configuration error."""
