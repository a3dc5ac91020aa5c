"""Correlation attenuation when a latent normal variable is cut into ordered categories."""

from importlib import metadata as _metadata

from .calculator import (
    category_probabilities,
    closed_form_attenuation,
    compute_attenuation,
    dichotomous_attenuation,
    discrete_moments,
)
from .config import NumericsConfig, get_config, set_config, temporary_config
from .discretize import assign_categories, standardize_thresholds, thresholds_from_cut_probabilities
from .errors import (
    AttenuationError,
    ConfigError,
    DegenerateVariance,
    IntegrationFailure,
    InvalidParameters,
    InvalidScheme,
    NumericalStabilityError,
)
from .integrator import bivariate_partial_moment, integrate_bivariate_tail
from .models import AttenuationResult, BivariateNormalParams, CategoryScheme, IntegrationResult, Region
from .simulate import SimulationResult, simulate_attenuation

try:
    __version__ = _metadata.version("latent-attenuation")
except _metadata.PackageNotFoundError:  # pragma: no cover - during local usage
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "AttenuationError",
    "AttenuationResult",
    "BivariateNormalParams",
    "CategoryScheme",
    "ConfigError",
    "DegenerateVariance",
    "IntegrationFailure",
    "IntegrationResult",
    "InvalidParameters",
    "InvalidScheme",
    "NumericalStabilityError",
    "NumericsConfig",
    "Region",
    "SimulationResult",
    "assign_categories",
    "bivariate_partial_moment",
    "category_probabilities",
    "closed_form_attenuation",
    "compute_attenuation",
    "dichotomous_attenuation",
    "discrete_moments",
    "get_config",
    "integrate_bivariate_tail",
    "set_config",
    "simulate_attenuation",
    "standardize_thresholds",
    "temporary_config",
    "thresholds_from_cut_probabilities",
]
