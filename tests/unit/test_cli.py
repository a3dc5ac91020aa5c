from __future__ import annotations

import json

import pytest

from attenuation.cli import main

from tests._factories import DICHOTOMOUS_FACTOR, FOUR_CATEGORY_FACTOR

SCENARIOS = """\
simulation:
  n: 2000
  seed: 4
scenarios:
  - name: dichotomous
    rho: 0.5
    cut_probabilities: [0.3]
"""


def test_compute_json(capsys):
    rc = main(["compute", "--rho", "0.5", "--cut-probabilities", "0.3", "--json"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["attenuation_factor"] == pytest.approx(DICHOTOMOUS_FACTOR, abs=1e-5)
    assert out["method"] == "conditional"


def test_compute_table(capsys):
    rc = main(
        ["compute", "--rho", "0.5", "--cut-probabilities", "0.5", "0.8", "0.9", "--labels", "0", "1", "2", "3"]
    )
    assert rc == 0
    out = capsys.readouterr().out
    line = next(ln for ln in out.splitlines() if ln.startswith("attenuation_factor:"))
    assert float(line.split(":")[1]) == pytest.approx(FOUR_CATEGORY_FACTOR, abs=1e-5)
    assert "probability" in out


def test_compute_raw_thresholds(capsys):
    rc = main(
        ["compute", "--rho", "0.4", "--thresholds", "85", "100", "115", "--latent-mean", "100",
         "--latent-sd", "15", "--json"]
    )
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["thresholds"] == pytest.approx([-1.0, 0.0, 1.0])


def test_integrate_full_plane(capsys):
    rc = main(["integrate", "--rho", "0.5"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["value"] == pytest.approx(0.5, rel=1e-7)
    assert out["neval"] > 0


def test_compare(tmp_path, capsys):
    path = tmp_path / "s.yaml"
    path.write_text(SCENARIOS, encoding="utf-8")
    rc = main(["compare", "--config", str(path), "--samples", "2000"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "dichotomous" in out
    assert "factor_analytic" in out


@pytest.mark.parametrize(
    "argv",
    [
        ["compute", "--rho", "0.5", "--thresholds", "inf"],
        ["compute", "--rho", "1.0", "--thresholds", "0"],
        ["compute", "--rho", "0.5", "--thresholds", "1", "0"],
        ["integrate", "--rho", "0.5", "--sd-x", "0"],
    ],
)
def test_invalid_input_exits_2(argv, capsys):
    assert main(argv) == 2
    assert "ERROR" in capsys.readouterr().err


def test_missing_config_exits_2(tmp_path, capsys):
    assert main(["compare", "--config", str(tmp_path / "missing.yaml")]) == 2
    assert "ConfigError" in capsys.readouterr().err


def test_integration_failure_exits_1(capsys):
    assert main(["integrate", "--rho", "0.5", "--max-evaluations", "5"]) == 1
    assert "integration failed" in capsys.readouterr().err


def test_argparse_rejects_both_cut_sources():
    with pytest.raises(SystemExit):
        main(["compute", "--rho", "0.5", "--thresholds", "0", "--cut-probabilities", "0.5"])


def test_undecodable_config_exits_2(tmp_path, capsys):
    path = tmp_path / "bad.yaml"
    path.write_bytes(b"scenarios:\n  - name: \xff\n")
    assert main(["compare", "--config", str(path)]) == 2
    assert "ConfigError" in capsys.readouterr().err
