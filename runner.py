"""Repository-level CLI entrypoint for the launch failure engine.

This wrapper keeps the documented invocation style:

    python runner.py <scenario.json> [--output-dir results/] [--trials N]

It delegates execution to :mod:`launch_failure.runner`.
"""

from __future__ import annotations

import sys
from pathlib import Path

from launch_failure.runner import main


def _rewrite_config_path_arg(argv: list[str]) -> list[str]:
    """Rewrite the scenario argument to ``launch_failure/<name>`` when needed.

    Bundled scenarios such as ``scenario_default.json`` live under
    ``launch_failure/`` but are usually named from the repository root.
    """
    if len(argv) < 2:
        return argv

    candidate = Path(argv[1])
    if candidate.exists():
        return argv

    alt = Path("launch_failure") / candidate
    if alt.exists():
        out = list(argv)
        out[1] = str(alt)
        return out

    return argv


if __name__ == "__main__":
    main(_rewrite_config_path_arg(sys.argv)[1:])
