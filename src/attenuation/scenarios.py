"""
Scenario files: every parameter of a comparison run, passed explicitly.

Schema (YAML):

    integration:
      tolerance: 1.0e-7
      method: conditional
    simulation:
      n: 10000
      seed: 2024
    scenarios:
      - name: dichotomous
        rho: 0.5
        cut_probabilities: [0.3]
      - name: four-category
        rho: 0.5
        cut_probabilities: [0.5, 0.8, 0.9]
        labels: [0, 1, 2, 3]

Each scenario gives exactly one of ``thresholds`` (raw units of Y*) or
``cut_probabilities`` (cumulative mass below each cut).
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .discretize import thresholds_from_cut_probabilities, validate_thresholds
from .errors import AttenuationError, ConfigError

__all__ = [
    "IntegrationSettings",
    "SimulationSettings",
    "Scenario",
    "ScenarioFile",
    "load_scenarios",
    "scenarios_from_dict",
]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class IntegrationSettings(_Frozen):
    tolerance: float = Field(default=1e-7, gt=0.0, lt=1.0)
    method: Literal["conditional", "dblquad"] = "conditional"


class SimulationSettings(_Frozen):
    n: int = Field(default=10_000, ge=2)
    seed: int = Field(default=0, ge=0)


class Scenario(_Frozen):
    name: str = Field(min_length=1)
    rho: float = Field(gt=-1.0, lt=1.0)
    thresholds: Optional[List[float]] = None
    cut_probabilities: Optional[List[float]] = None
    labels: Optional[List[float]] = None
    latent_mean: float = 0.0
    latent_sd: float = Field(default=1.0, gt=0.0)

    @field_validator("latent_mean", "latent_sd")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("must be finite")
        return v

    @model_validator(mode="after")
    def _exactly_one_cut_source(self) -> "Scenario":
        if (self.thresholds is None) == (self.cut_probabilities is None):
            raise ValueError("give exactly one of 'thresholds' or 'cut_probabilities'")
        try:
            k = len(self.resolved_thresholds()) + 1
        except AttenuationError as e:
            raise ValueError(str(e)) from e
        if self.labels is not None and len(self.labels) != k:
            raise ValueError(f"expected {k} labels, got {len(self.labels)}")
        return self

    def resolved_thresholds(self) -> tuple[float, ...]:
        """Thresholds in the raw units of Y*."""
        if self.thresholds is not None:
            return validate_thresholds(self.thresholds)
        return thresholds_from_cut_probabilities(self.cut_probabilities, self.latent_mean, self.latent_sd)


class ScenarioFile(_Frozen):
    integration: IntegrationSettings = Field(default_factory=IntegrationSettings)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    scenarios: List[Scenario] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_names(self) -> "ScenarioFile":
        names = [s.name for s in self.scenarios]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"duplicate scenario names: {dupes}")
        return self


def scenarios_from_dict(d: Any, *, source: str = "<dict>") -> ScenarioFile:
    if not isinstance(d, dict):
        raise ConfigError(f"{source}: scenario config must be a mapping, got {type(d).__name__}")
    try:
        return ScenarioFile.model_validate(d)
    except ValidationError as e:
        lines = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ConfigError(f"{source}: invalid scenario config:\n  " + "\n  ".join(lines)) from e


def load_scenarios(path: Union[str, Path]) -> ScenarioFile:
    """Read and validate a YAML scenario file."""
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Could not read scenario file {str(p)!r}: {e}") from e
    try:
        obj = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            loc = f"line={mark.line + 1}, column={mark.column + 1}"
            raise ConfigError(f"YAML parse error in {str(p)!r} ({loc}): {e}") from e
        raise ConfigError(f"YAML parse error in {str(p)!r}: {e}") from e
    if obj is None:
        obj = {}
    return scenarios_from_dict(obj, source=str(p))
