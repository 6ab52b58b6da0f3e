#!/usr/bin/env python3
"""List locally held patients with data quality issues."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from mtbintake import (  # noqa: E402
    Gender,
    IntakeConfigLoader,
    PatientFilter,
    build_intake_service,
)
from mtbintake.views import patient_data_infos_frame  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="List patients with incomplete data")
    parser.add_argument("--config", required=True, help="Path to intake JSON config")
    parser.add_argument(
        "--gender",
        action="append",
        choices=[gender.value for gender in Gender],
        help="Restrict to a gender (repeatable).",
    )
    parser.add_argument("--message", help="Substring of an issue message.")
    parser.add_argument("--entry-type", help="Substring of an issue's entry type.")
    parser.add_argument("--attribute", help="Substring of an issue's attribute.")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    config = IntakeConfigLoader().load(args.config)
    service = build_intake_service(config)
    criteria = PatientFilter(
        genders=frozenset(Gender(value) for value in args.gender) if args.gender else None,
        issue_message=args.message,
        entry_type=args.entry_type,
        attribute=args.attribute,
    )

    try:
        infos = asyncio.run(service.patients_with_incomplete_data(criteria))
    finally:
        service.close()

    if args.format == "json":
        print(json.dumps([info.to_row() for info in infos], indent=2))
        return 0

    frame = patient_data_infos_frame(infos)
    if frame.empty:
        print("No patients with data quality issues.")
    else:
        print(frame.to_string(index=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
