"""
attenuation CLI

Subcommands:
  - compute     Attenuation factor/correlation for one category scheme
  - integrate   One bivariate-normal partial moment over a rectangle
  - compare     Analytic vs Monte Carlo table for a YAML scenario file

Examples:
  python -m attenuation compute --rho 0.5 --cut-probabilities 0.3
  python -m attenuation compute --rho 0.5 --cut-probabilities 0.5 0.8 0.9 --labels 0 1 2 3 --json
  python -m attenuation integrate --rho 0.3 --y-lo 0 --moments 1 1
  python -m attenuation compare --config examples/scenarios.yaml --samples 100000

Exit codes: 0 success, 1 numerical failure, 2 invalid input/config.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from typing import Optional

import pandas as pd

from .calculator import compute_attenuation
from .discretize import thresholds_from_cut_probabilities
from .errors import AttenuationError, IntegrationFailure
from .integrator import bivariate_partial_moment
from .models import BivariateNormalParams, Region
from .report import category_table, comparison_table, format_table
from .scenarios import load_scenarios

LOG = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="attenuation",
        description="Correlation attenuation under discretization of a latent normal variable.",
    )
    ap.add_argument("--log-level", type=str, default="WARNING", help="Logging level.")
    sub = ap.add_subparsers(dest="command", required=True)

    c = sub.add_parser("compute", help="Attenuation for one category scheme.")
    c.add_argument("--rho", type=float, required=True, help="Latent correlation in (-1, 1).")
    cuts = c.add_mutually_exclusive_group(required=True)
    cuts.add_argument("--thresholds", type=float, nargs="+", help="Cut points in raw units of Y*.")
    cuts.add_argument(
        "--cut-probabilities", type=float, nargs="+", help="Cumulative mass below each cut, e.g. 0.5 0.8 0.9."
    )
    c.add_argument("--labels", type=float, nargs="+", default=None, help="Category values (default 0..k-1).")
    c.add_argument("--latent-mean", type=float, default=0.0)
    c.add_argument("--latent-sd", type=float, default=1.0)
    c.add_argument("--tolerance", type=float, default=None, help="Relative quadrature tolerance.")
    c.add_argument("--method", choices=("conditional", "dblquad"), default="conditional")
    c.add_argument("--json", action="store_true", help="Print the full result as JSON.")

    i = sub.add_parser("integrate", help="Partial moment of the bivariate normal over a rectangle.")
    i.add_argument("--x-lo", type=float, default=float("-inf"))
    i.add_argument("--x-hi", type=float, default=float("inf"))
    i.add_argument("--y-lo", type=float, default=float("-inf"))
    i.add_argument("--y-hi", type=float, default=float("inf"))
    i.add_argument("--mean-x", type=float, default=0.0)
    i.add_argument("--mean-y", type=float, default=0.0)
    i.add_argument("--sd-x", type=float, default=1.0)
    i.add_argument("--sd-y", type=float, default=1.0)
    i.add_argument("--rho", type=float, required=True)
    i.add_argument("--moments", type=int, nargs=2, default=[1, 1], metavar=("A", "B"))
    i.add_argument("--tolerance", type=float, default=None)
    i.add_argument("--method", choices=("conditional", "dblquad"), default="conditional")
    i.add_argument("--max-evaluations", type=int, default=None)

    m = sub.add_parser("compare", help="Analytic vs simulated attenuation for a scenario file.")
    m.add_argument("--config", required=True, help="Path to YAML scenario file.")
    m.add_argument("--samples", type=int, default=None, help="Override simulation.n.")
    m.add_argument("--seed", type=int, default=None, help="Override simulation.seed.")
    return ap


def _cmd_compute(args: argparse.Namespace) -> int:
    if args.thresholds is not None:
        taus = tuple(args.thresholds)
    else:
        taus = thresholds_from_cut_probabilities(args.cut_probabilities, args.latent_mean, args.latent_sd)
    res = compute_attenuation(
        args.rho,
        taus,
        args.labels,
        latent_mean=args.latent_mean,
        latent_sd=args.latent_sd,
        tolerance=args.tolerance,
        method=args.method,
    )
    if args.json:
        print(json.dumps(res.to_dict(), sort_keys=True))
        return 0
    print(format_table(category_table(res)))
    print(f"attenuation_factor: {res.attenuation_factor:.6f}")
    print(f"attenuated_correlation: {res.attenuated_correlation:.6f}")
    return 0


def _cmd_integrate(args: argparse.Namespace) -> int:
    params = BivariateNormalParams(args.mean_x, args.mean_y, args.sd_x, args.sd_y, args.rho)
    region = Region((args.x_lo, args.x_hi), (args.y_lo, args.y_hi))
    res = bivariate_partial_moment(
        region,
        params,
        args.tolerance,
        moments=tuple(args.moments),
        method=args.method,
        max_evaluations=args.max_evaluations,
    )
    print(json.dumps({"value": res.value, "abserr": res.abserr, "neval": res.neval, "method": res.method}))
    return 0


def _cmd_compare(args: argparse.Namespace) -> int:
    cfg = load_scenarios(args.config)
    LOG.info("Comparing %d scenario(s) from %s", len(cfg.scenarios), args.config)
    df = comparison_table(cfg, n=args.samples, seed=args.seed)
    with pd.option_context("display.width", 160, "display.max_columns", 50):
        print(format_table(df))
    return 0


_COMMANDS = {"compute": _cmd_compute, "integrate": _cmd_integrate, "compare": _cmd_compare}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    try:
        return _COMMANDS[args.command](args)
    except IntegrationFailure as e:
        LOG.error("Integration failed: %s", e)
        print(f"ERROR: integration failed: {e}", file=sys.stderr)
        return 1
    except AttenuationError as e:
        LOG.error("%s: %s", type(e).__name__, e)
        print(f"ERROR: {type(e).__name__}: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
