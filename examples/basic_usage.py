#!/usr/bin/env python3
"""Programmatic gate pipeline example.

This demonstrates using the core components directly:

* load settings from `.env`
* add a feature and pass its gates in order
* persist the feature list under the memory bank

The feature list is passed as an argument (not read from `.env`).
"""

from __future__ import annotations

import argparse
from typing import Sequence

from director_ops.core.config import DirectorOpsSettings
from director_ops.core.context import DirectorOpsContext
from director_ops.core.errors import OrderViolation
from director_ops.logging import configure_logging


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a feature through the gate pipeline.")
    parser.add_argument("--list", dest="list_name", default="example", help="Feature list name")
    parser.add_argument("--name", required=True, help="Feature name")
    parser.add_argument("--gates", type=int, default=7, help="How many gates to pass (1-7)")
    parser.add_argument(
        "--skip-first",
        action="store_true",
        help="Start at gate 2 to show an order violation",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = DirectorOpsSettings()
    configure_logging(settings.log_level, settings.log_format)
    ctx = DirectorOpsContext.from_settings(settings)

    start = 2 if args.skip_first else 1
    with ctx.features(args.list_name) as pipeline:
        feature = pipeline.add_feature(args.name, director="engineering")

    try:
        with ctx.features(args.list_name) as pipeline:
            for gate in range(start, args.gates + 1):
                pipeline.validate_gate(feature.id, gate, validator_id="example")
    except OrderViolation as exc:
        print(str(exc))
        return 1

    report = ctx.load_features(args.list_name).gate_report(feature.id)
    print(f"{report.feature_name}: {report.passed}/{report.total} gates passed")
    print(f"Saved to: {ctx.feature_store.path_for(args.list_name)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
