#!/usr/bin/env python3
"""Run case file uploads or deletes through the intake service."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from mtbintake import (  # noqa: E402
    CaseFileFormatError,
    CaseFileSchema,
    Delete,
    Deleted,
    Imported,
    IntakeConfigLoader,
    IntakeService,
    IssuesDetected,
    Outcome,
    Rejected,
    UnspecificError,
    Upload,
    build_intake_service,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Submit intake commands from the command line")
    parser.add_argument("--config", required=True, help="Path to intake JSON config")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    upload = commands.add_parser("upload", help="Upload one or more case file JSON documents")
    upload.add_argument("files", nargs="+", type=Path)

    delete = commands.add_parser("delete", help="Delete all data of one or more patients")
    delete.add_argument("patient_ids", nargs="+")

    return parser.parse_args()


def describe(outcome: Outcome) -> dict[str, Any]:
    summary: dict[str, Any] = {
        "outcome": type(outcome).__name__,
        "error": outcome.is_error,
    }
    if isinstance(outcome, Imported):
        summary["patient"] = outcome.case_file.patient_id
    elif isinstance(outcome, (IssuesDetected, Rejected)):
        summary["patient"] = outcome.report.patient
        summary["issues"] = [issue.to_dict() for issue in outcome.report.issues]
    elif isinstance(outcome, Deleted):
        summary["patient"] = outcome.patient_id
    elif isinstance(outcome, UnspecificError):
        summary["message"] = outcome.message
    return summary


async def run_uploads(
    service: IntakeService,
    files: list[Path],
    logger: logging.Logger,
) -> list[dict[str, Any]]:
    schema = CaseFileSchema()
    results: list[dict[str, Any]] = []
    for path in files:
        try:
            case_file = schema.load(path)
        except (CaseFileFormatError, OSError) as exc:
            logger.error("Skipping %s: %s", path, exc)
            results.append({"file": str(path), "outcome": "Unreadable", "error": True, "message": str(exc)})
            continue

        outcome = await service.process(Upload(case_file))
        results.append({"file": str(path), **describe(outcome)})
    return results


async def run_deletes(service: IntakeService, patient_ids: list[str]) -> list[dict[str, Any]]:
    results: list[dict[str, Any]] = []
    for patient_id in patient_ids:
        outcome = await service.process(Delete(patient_id))
        results.append(describe(outcome))
    return results


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    logger = logging.getLogger("mtbintake.cli")

    config = IntakeConfigLoader().load(args.config)
    logger.info("Intake site: %s (storage=%s, forwarder=%s)", config.site, config.storage.type, config.forwarder.type)
    service = build_intake_service(config)

    try:
        if args.command == "upload":
            results = asyncio.run(run_uploads(service, args.files, logger))
        else:
            results = asyncio.run(run_deletes(service, args.patient_ids))
    finally:
        service.close()

    failed = sum(1 for result in results if result["error"])
    payload = {
        "site": config.site,
        "command": args.command,
        "total": len(results),
        "failed": failed,
        "results": results,
    }
    print(json.dumps(payload, indent=2))
    return 0 if failed == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
