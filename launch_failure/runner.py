"""
Runner script for the launch failure engine.

Loads a JSON scenario, builds the vessel and settings, and either flies a
single launch with a forced failure session or, with ``--trials N``, runs a
Monte Carlo experiment over N independent launches.

Single flight
    Outputs flight_log.csv, cascade_summary.csv and summary.json.

Monte Carlo
    Outputs monte_carlo_trials.csv and summary.json.

Usage
-----
    python runner.py scenario.json [--output-dir results/] [--trials N]

A scenario snapshot with SHA-256 hash is always saved alongside results for
reproducibility.
"""

from __future__ import annotations

import argparse
import csv
import hashlib
import json
import logging
import time
from pathlib import Path

from .config import ConfigDict, build_rng, load_config, settings_from_config
from .flight import profile_from_config, simulate_flight
from .metrics import cascade_size, flight_summary
from .monte_carlo import MonteCarloResult, run_monte_carlo
from .vessel import body_from_config, vessel_from_config


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Launch failure engine: single flight or Monte Carlo runner."
    )
    parser.add_argument("config", help="Path to JSON scenario file.")
    parser.add_argument(
        "--output-dir",
        default="results",
        help="Directory for output files (default: results/).",
    )
    parser.add_argument(
        "--trials",
        type=int,
        default=0,
        help="Run a Monte Carlo experiment with this many launches.",
    )
    parser.add_argument(
        "--apply-initial-probability",
        action="store_true",
        help="Gate each Monte Carlo launch on initial_failure_probability.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine events.")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _write_csv(path: Path, fieldnames: list[str], rows: list[dict]) -> None:
    with path.open("w", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


def _config_hash(cfg: ConfigDict) -> str:
    """SHA-256 of the JSON-serialised scenario."""
    serialised = json.dumps(cfg, sort_keys=True).encode("utf-8")
    return hashlib.sha256(serialised).hexdigest()


def _save_config_snapshot(output_dir: Path, cfg: ConfigDict) -> None:
    snapshot = {
        "config": cfg,
        "sha256": _config_hash(cfg),
    }
    (output_dir / "config_snapshot.json").write_text(json.dumps(snapshot, indent=2))


# ---------------------------------------------------------------------------
# Single flight
# ---------------------------------------------------------------------------


def _run_single_flight(cfg: ConfigDict, output_dir: Path) -> dict:
    settings = settings_from_config(cfg)
    rng = build_rng(cfg)
    vessel = vessel_from_config(cfg["vessel"], rng)
    body = body_from_config(cfg["body"])

    print(f"[Flight] {vessel.name} | {len(vessel.all_parts)} parts | body={body.name}")
    t0 = time.perf_counter()
    result = simulate_flight(
        vessel,
        body,
        settings,
        rng,
        profile=profile_from_config(cfg.get("ascent", {})),
        max_flight_time=float(cfg.get("max_flight_time", 600.0)),
    )
    elapsed = time.perf_counter() - t0

    _write_csv(
        output_dir / "flight_log.csv",
        ["time", "vessel", "event"],
        [{"time": round(e.time, 4), "vessel": e.vessel, "event": e.text} for e in result.events],
    )

    cs = cascade_size(vessel, result.doomed)
    _write_csv(
        output_dir / "cascade_summary.csv",
        ["metric", "value"],
        [{"metric": k, "value": v} for k, v in cs.items()],
    )

    summary = {"mode": "single_flight", "elapsed_seconds": elapsed, **flight_summary(result), **cs}
    (output_dir / "summary.json").write_text(json.dumps(summary, indent=2))
    _print_flight_summary(summary, result.events)
    return summary


def _print_flight_summary(summary: dict, events) -> None:
    sep = "-" * 58
    print(sep)
    print("  Launch Failure Engine — Single Flight")
    print(sep)
    print(f"  Failure type        : {summary['failure_type']}")
    print(f"  Starting part       : {summary['failed_part']}")
    print(f"  Altitude threshold  : {summary['altitude_threshold']} m")
    print(f"  Ended               : {summary['termination_reason'] or 'still running'}"
          f" at t={summary['end_time']:.2f}s")
    print(f"  Doomed / exploded   : {summary['n_doomed']} / {summary['n_exploded']}"
          f"  ({summary['frac_doomed']:.1%} of vessel)")
    if events:
        print()
        print("  Flight log")
        for e in events:
            print(f"    {e.time:8.2f}s  {e.text}")
    print(sep)


# ---------------------------------------------------------------------------
# Monte Carlo
# ---------------------------------------------------------------------------


def _run_monte_carlo(
    cfg: ConfigDict, trials: int, apply_initial_probability: bool, output_dir: Path
) -> dict:
    master_seed = int(cfg["seed"])
    print(f"[Monte Carlo] trials={trials} | seed={master_seed}")

    t0 = time.perf_counter()
    mc: MonteCarloResult = run_monte_carlo(
        cfg, trials, master_seed, apply_initial_probability=apply_initial_probability
    )
    elapsed = time.perf_counter() - t0

    _write_csv(
        output_dir / "monte_carlo_trials.csv",
        ["trial", "failure_started", "n_doomed"],
        [
            {"trial": i, "failure_started": bool(s), "n_doomed": int(d)}
            for i, (s, d) in enumerate(zip(mc.failure_started, mc.doomed_counts))
        ],
    )
    summary = {"mode": "monte_carlo", "elapsed_seconds": elapsed, **mc.summary_dict()}
    (output_dir / "summary.json").write_text(json.dumps(summary, indent=2))
    _print_mc_summary(summary)
    return summary


def _print_mc_summary(summary: dict) -> None:
    sep = "-" * 58
    print(sep)
    print("  Launch Failure Engine — Monte Carlo")
    print(sep)
    print(f"  Trials              : {summary['trials']}")
    print(f"  Elapsed             : {summary['elapsed_seconds']:.2f}s")
    print(f"  Failure started     : {summary['occurrence_rate']:.1%}")
    print(f"  Mean doomed parts   : {summary['mean_doomed']:.3f}"
          f"  (95% CI {summary['ci_95_low']:.3f} – {summary['ci_95_high']:.3f})")
    print(f"  Max doomed parts    : {summary['max_doomed']}")
    print()
    print("  Failure types")
    for name, count in sorted(summary["failure_type_counts"].items()):
        print(f"    {name:<20}: {count}")
    print("  Endings")
    for name, count in sorted(summary["termination_counts"].items()):
        print(f"    {name:<20}: {count}")
    print(sep)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    output_dir = Path(args.output_dir)
    _ensure_dir(output_dir)

    cfg = load_config(args.config)
    _save_config_snapshot(output_dir, cfg)

    (output_dir / "experiment_metadata.json").write_text(
        json.dumps(
            {
                "config_file": str(Path(args.config).resolve()),
                "output_dir": str(output_dir.resolve()),
                "config_sha256": _config_hash(cfg),
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            },
            indent=2,
        )
    )

    if args.trials:
        _run_monte_carlo(cfg, args.trials, args.apply_initial_probability, output_dir)
    else:
        _run_single_flight(cfg, output_dir)

    print(f"  Results saved to : {output_dir.resolve()}")


if __name__ == "__main__":
    main()
