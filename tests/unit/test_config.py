from __future__ import annotations

import warnings

import pytest

from attenuation import config as _config
from attenuation.config import NumericsConfig, get_config, invariant, set_config, temporary_config
from attenuation.errors import InvalidParameters, NumericalStabilityError


def test_defaults():
    cfg = NumericsConfig()
    assert cfg.rel_tol == 1e-7
    assert cfg.max_evaluations == 200_000
    assert cfg.invariant_policy == "raise"


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(rel_tol=-1.0),
        dict(abs_tol=float("nan")),
        dict(max_subdivisions=0),
        dict(max_evaluations=True),
        dict(invariant_policy="explode"),
    ],
)
def test_rejects_invalid_values(kwargs):
    with pytest.raises(InvalidParameters):
        NumericsConfig(**kwargs)


def test_policy_is_normalized():
    assert NumericsConfig(invariant_policy=" WARN ").invariant_policy == "warn"


def test_set_config_replaces_instance():
    before = get_config()
    set_config(rel_tol=1e-9)
    assert get_config() is not before
    assert get_config().rel_tol == 1e-9
    assert before.rel_tol == 1e-7


def test_set_config_unknown_field():
    with pytest.raises(InvalidParameters, match="Unknown config field"):
        set_config(tolerance=1e-3)


def test_temporary_config_restores_on_error():
    before = get_config()
    with pytest.raises(RuntimeError):
        with temporary_config(max_evaluations=10) as cfg:
            assert cfg.max_evaluations == 10
            assert _config.CONFIG is cfg
            raise RuntimeError("boom")
    assert get_config() is before


def test_invariant_policies():
    with pytest.raises(NumericalStabilityError):
        invariant("bad")
    with temporary_config(invariant_policy="warn"):
        with pytest.warns(RuntimeWarning, match="bad"):
            invariant("bad")
    with temporary_config(invariant_policy="ignore"):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            invariant("bad")
