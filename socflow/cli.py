"""
SocFlow CLI: operator utilities for the Analytics Backend.

Usage:
    python -m socflow.cli ingest --assets A.csv --threat-intel T.csv \\
        --auth-logs AU.csv --network-logs N.csv [--detect]
    python -m socflow.cli detect
    python -m socflow.cli alerts [--status NEW] [--severity HIGH]
    python -m socflow.cli bulk-status --status RESOLVED ID [ID ...]

Commands:
    ingest        Upload the four data sources in order and optionally run
                  detection once every upload has succeeded.
    detect        Trigger a detection run directly.
    alerts        List alerts from the backend.
    bulk-status   Apply one status to many alerts.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from socflow.alerts import AlertCache, BulkMutationRunner
from socflow.core.config import SocFlowConfig
from socflow.core.failures import FileTooLargeError, classify_exception
from socflow.core.fanout import make_fanout
from socflow.core.types import (
    DETECTION_HOURS_BACK,
    DETECTION_TIMEOUT_SECONDS,
    AlertSeverity,
    AlertStatus,
    SelectedFile,
    SourceType,
)
from socflow.detection import DetectionJob
from socflow.ingestion import UploadCoordinator
from socflow.sdk import AnalyticsClient, AnalyticsError, AsyncAnalyticsClient

logger = logging.getLogger("SocFlow.CLI")

_SOURCE_ARGS = (
    (SourceType.ASSETS, "assets"),
    (SourceType.THREAT_INTEL, "threat_intel"),
    (SourceType.AUTH_LOGS, "auth_logs"),
    (SourceType.NETWORK_LOGS, "network_logs"),
)


def _load_config(config_path: Optional[Path]) -> SocFlowConfig:
    if config_path is not None:
        return SocFlowConfig.from_yaml(str(config_path))
    return SocFlowConfig.from_env()


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _async_client(config: SocFlowConfig) -> AsyncAnalyticsClient:
    return AsyncAnalyticsClient(
        base_url=config.backend.base_url,
        api_key=config.backend.api_key,
        timeout=config.backend.request_timeout,
    )


# ─────────────────────────────────────────────────────────────────────────────
# ingest command
# ─────────────────────────────────────────────────────────────────────────────

async def _run_ingest(args: argparse.Namespace, config: SocFlowConfig) -> int:
    async with _async_client(config) as client:
        coordinator = UploadCoordinator(client)
        for source_type, attr in _SOURCE_ARGS:
            path: Optional[Path] = getattr(args, attr)
            if path is None:
                continue
            try:
                coordinator.select_file(source_type, SelectedFile.from_path(path))
            except FileTooLargeError as exc:
                print(f"{source_type.value}: {exc.failure.message} ({exc.size} bytes)")
            except OSError as exc:
                print(f"{source_type.value}: cannot read {path}: {exc}")

        summary = await coordinator.trigger_all()

        if args.json:
            print(json.dumps(summary.as_dict(), indent=2))
        else:
            print("\nUpload summary")
            print("=" * 50)
            for result in summary.results:
                if result.succeeded:
                    print(f"  {result.source_type.value:<14} OK      {result.record_count} records")
                else:
                    print(f"  {result.source_type.value:<14} FAILED  {result.error.message}")
            for source_type in summary.skipped:
                print(f"  {source_type.value:<14} SKIPPED no file selected")
            print(f"  total records: {summary.total_records}")

        if not args.detect:
            return 0 if coordinator.all_ready else 1

        job = DetectionJob(
            client,
            coordinator,
            navigation_delay=config.workflow.navigation_delay_seconds,
        )
        outcome = await job.run()
        if not outcome.accepted or outcome.error is not None:
            print(f"\nDetection not completed: {outcome.error.message}")
            return 2
        print(f"\nDetection completed successfully! Generated {outcome.alerts_generated} alerts")
        return 0


def cmd_ingest(args: argparse.Namespace, config: SocFlowConfig) -> int:
    return asyncio.run(_run_ingest(args, config))


# ─────────────────────────────────────────────────────────────────────────────
# detect command
# ─────────────────────────────────────────────────────────────────────────────

def cmd_detect(args: argparse.Namespace, config: SocFlowConfig) -> int:
    with AnalyticsClient(
        base_url=config.backend.base_url,
        api_key=config.backend.api_key,
        timeout=config.backend.request_timeout,
    ) as client:
        try:
            results = client.run_detection(
                hours_back=args.hours_back,
                timeout=DETECTION_TIMEOUT_SECONDS,
            )
        except AnalyticsError as exc:
            failure = classify_exception(exc)
            print(f"Detection failed: {failure.message}")
            return 2
    print(json.dumps(results.model_dump(), indent=2))
    return 0


# ─────────────────────────────────────────────────────────────────────────────
# alerts command
# ─────────────────────────────────────────────────────────────────────────────

def cmd_alerts(args: argparse.Namespace, config: SocFlowConfig) -> int:
    with AnalyticsClient(
        base_url=config.backend.base_url,
        api_key=config.backend.api_key,
        timeout=config.backend.request_timeout,
    ) as client:
        try:
            alerts = client.list_alerts(
                severity=args.severity,
                status=args.status,
                limit=args.limit,
            )
        except AnalyticsError as exc:
            print(f"Failed to fetch alerts: {classify_exception(exc).message}")
            return 2
    for alert in alerts:
        print(f"{alert.id}  {alert.severity.value:<8} {alert.status.value:<14} {alert.title}")
    print(f"{len(alerts)} alerts")
    return 0


# ─────────────────────────────────────────────────────────────────────────────
# bulk-status command
# ─────────────────────────────────────────────────────────────────────────────

async def _run_bulk_status(args: argparse.Namespace, config: SocFlowConfig) -> int:
    async with _async_client(config) as client:
        runner = BulkMutationRunner(
            client,
            AlertCache(),
            fanout=make_fanout(config.workflow.bulk_concurrency),
        )
        outcomes = await runner.apply(args.alert_ids, args.status)
    report = BulkMutationRunner.summarize(outcomes, args.status)
    if args.json:
        print(json.dumps(report.as_dict(), indent=2))
    else:
        print(f"Updated {report.applied} alerts to {report.desired_state.value}; {report.failed} failed")
        for outcome in report.outcomes:
            if outcome.error is not None:
                print(f"  {outcome.alert_id}: {outcome.error.message}")
    return 0 if report.failed == 0 else 1


def cmd_bulk_status(args: argparse.Namespace, config: SocFlowConfig) -> int:
    return asyncio.run(_run_bulk_status(args, config))


# ─────────────────────────────────────────────────────────────────────────────
# Argument parser
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="socflow.cli",
        description="SocFlow CLI: ingestion, detection and alert triage utilities.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  python -m socflow.cli ingest --assets assets.csv --threat-intel ti.csv \\\n"
               "      --auth-logs auth.csv --network-logs net.csv --detect\n"
               "  python -m socflow.cli alerts --status NEW --limit 20\n"
               "  python -m socflow.cli bulk-status --status RESOLVED a1 a2 a3\n",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="YAML config file (default: SOCFLOW_* environment variables).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser(
        "ingest",
        help="Upload data sources and optionally run detection.",
        description=(
            "Uploads the selected files one at a time in the order assets,\n"
            "threat intel, auth logs, network logs. Detection runs only when\n"
            "all four uploads succeeded."
        ),
    )
    for _source_type, attr in _SOURCE_ARGS:
        ingest.add_argument(
            f"--{attr.replace('_', '-')}",
            dest=attr,
            type=Path,
            default=None,
            metavar="PATH",
            help=f"CSV file for the {attr.replace('_', ' ')} source.",
        )
    ingest.add_argument(
        "--detect",
        action="store_true",
        default=False,
        help="Run detection after every source uploaded successfully.",
    )
    ingest.add_argument("--json", action="store_true", default=False, help="Print the summary as JSON.")

    detect = subparsers.add_parser("detect", help="Trigger a detection run.")
    detect.add_argument(
        "--hours-back",
        type=int,
        default=DETECTION_HOURS_BACK,
        help="Trailing window in hours (default: 24).",
    )

    alerts = subparsers.add_parser("alerts", help="List alerts.")
    alerts.add_argument("--status", choices=[s.value for s in AlertStatus], default=None)
    alerts.add_argument("--severity", choices=[s.value for s in AlertSeverity], default=None)
    alerts.add_argument("--limit", type=int, default=20)

    bulk = subparsers.add_parser("bulk-status", help="Apply one status to many alerts.")
    bulk.add_argument("--status", choices=[s.value for s in AlertStatus], required=True)
    bulk.add_argument("alert_ids", nargs="+", metavar="ID")
    bulk.add_argument("--json", action="store_true", default=False, help="Print the report as JSON.")
    return parser


_COMMANDS = {
    "ingest": cmd_ingest,
    "detect": cmd_detect,
    "alerts": cmd_alerts,
    "bulk-status": cmd_bulk_status,
}


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = _load_config(args.config)
    _configure_logging(config.log_level)

    handler = _COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args, config)


if __name__ == "__main__":
    raise SystemExit(main())
