from __future__ import annotations

import json
import math

import pytest

from attenuation.config import temporary_config
from attenuation.errors import InvalidParameters, InvalidScheme
from attenuation.models import AttenuationResult, BivariateNormalParams, CategoryScheme, Region

INF = math.inf


class TestBivariateNormalParams:
    def test_fields_coerced_to_float(self):
        p = BivariateNormalParams(0, 1, 2, 3, 0)
        assert (p.mean_x, p.mean_y, p.sd_x, p.sd_y, p.rho) == (0.0, 1.0, 2.0, 3.0, 0.0)
        assert isinstance(p.sd_x, float)

    def test_frozen(self):
        p = BivariateNormalParams.standard(0.5)
        with pytest.raises(AttributeError):
            p.rho = 0.1  # type: ignore[misc]

    @pytest.mark.parametrize(
        "kwargs",
        [
            dict(sd_x=0.0),
            dict(sd_y=-1.0),
            dict(rho=1.0),
            dict(rho=-1.0),
            dict(mean_x=float("nan")),
            dict(mean_y=INF),
            dict(rho=True),
        ],
    )
    def test_rejects_invalid(self, kwargs):
        base = dict(mean_x=0.0, mean_y=0.0, sd_x=1.0, sd_y=1.0, rho=0.5)
        base.update(kwargs)
        with pytest.raises(InvalidParameters):
            BivariateNormalParams(**base)

    def test_coerce_variants(self):
        p = BivariateNormalParams.standard(0.3)
        assert BivariateNormalParams.coerce(p) is p
        assert BivariateNormalParams.coerce((0.0, 0.0, 1.0, 1.0, 0.3)) == p
        assert BivariateNormalParams.coerce({"mean_x": 0, "mean_y": 0, "sd_x": 1, "sd_y": 1, "rho": 0.3}) == p
        with pytest.raises(InvalidParameters):
            BivariateNormalParams.coerce("0,0,1,1,0.3")
        with pytest.raises(InvalidParameters):
            BivariateNormalParams.coerce((0.0, 0.0, 1.0))

    def test_swapped_and_covariance(self):
        p = BivariateNormalParams(1.0, 2.0, 3.0, 4.0, -0.25)
        assert p.swapped() == BivariateNormalParams(2.0, 1.0, 4.0, 3.0, -0.25)
        assert p.covariance == pytest.approx(-3.0)


class TestRegion:
    def test_full_plane_and_band(self):
        assert Region.full_plane().is_full_plane
        band = Region.y_band(-1.0, 2.0)
        assert band.x == (-INF, INF)
        assert band.y == (-1.0, 2.0)
        assert not band.is_empty

    def test_degenerate_interval_is_empty(self):
        assert Region((1.0, 1.0), (-INF, INF)).is_empty

    def test_swapped(self):
        r = Region((0.0, 1.0), (2.0, 3.0))
        assert r.swapped() == Region((2.0, 3.0), (0.0, 1.0))

    @pytest.mark.parametrize("bad", [((1.0, 0.0), (0.0, 1.0)), ((0.0, 1.0), (float("nan"), 1.0)), (0.0, 1.0), 3])
    def test_rejects_malformed(self, bad):
        with pytest.raises(InvalidParameters):
            Region.coerce(bad)


class TestCategoryScheme:
    def test_default_labels(self):
        s = CategoryScheme((-0.5, 0.5))
        assert s.labels == (0.0, 1.0, 2.0)
        assert s.n_categories == 3
        assert list(s.bounds()) == [(-INF, -0.5), (-0.5, 0.5), (0.5, INF)]

    def test_from_raw_standardizes(self):
        s = CategoryScheme.from_raw([85.0, 115.0], [1, 2, 3], mean=100.0, sd=15.0)
        assert s.thresholds == pytest.approx((-1.0, 1.0))
        assert s.labels == (1.0, 2.0, 3.0)

    def test_from_cut_probabilities(self):
        s = CategoryScheme.from_cut_probabilities([0.5, 0.8, 0.9])
        assert s.probabilities() == pytest.approx([0.5, 0.3, 0.1, 0.1], abs=1e-12)
        assert s.mean() == pytest.approx(0.8)
        assert s.variance() == pytest.approx(0.96)

    @pytest.mark.parametrize(
        "thresholds,labels",
        [((0.0,), (1.0,)), ((0.0,), (0.0, 1.0, 2.0)), ((0.0,), (0.0, float("nan"))), ((0.0,), (True, 1.0))],
    )
    def test_rejects_bad_labels(self, thresholds, labels):
        with pytest.raises(InvalidScheme):
            CategoryScheme(thresholds, labels)

    def test_probability_invariant_respects_policy(self):
        s = CategoryScheme((0.0,))
        with temporary_config(prob_tol=0.0, invariant_policy="ignore"):
            assert s.probabilities().sum() == pytest.approx(1.0)


def test_attenuation_result_to_dict_serializes_infinities():
    res = AttenuationResult(
        attenuation_factor=0.5,
        attenuated_correlation=0.25,
        rho=0.5,
        thresholds=(-INF, 0.0),
        labels=(0.0, 1.0, 2.0),
        category_probabilities=(0.0, 0.5, 0.5),
    )
    d = res.to_dict()
    assert d["thresholds"] == ["-inf", 0.0]
    json.dumps(d)
