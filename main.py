#!/usr/bin/env python3
"""
PharmOutcomes Auto-Entry - Main Orchestrator
Description:
Reads consultation records from a CSV file, enters each one into PharmOutcomes
(registering the patient first when needed) and writes one outcome row per
record to <output_dir>/<timestamp>.csv, with a step-by-step log alongside in
<output_dir>/<timestamp>.log.
"""

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

from base_exceptions import RunAbortedError
from config_manager import ConfigurationManager, EntryAutomationConfig
from entry_workflow import EntryWorkflowController
from outcome_sink import OutcomeSink
from outcomes import status_succeeded
from performance_monitor import PerformanceMonitor
from records import InputRecord, OutcomeRecord, read_input_records
from run_context import RunContext, new_run_timestamp
from session_manager import open_session

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(log_file: Path, level: str = "INFO") -> None:
    """Send log lines to the console and to the run's .log file"""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler()
        ],
        force=True
    )


async def run_entries(records: Sequence[InputRecord], controller: EntryWorkflowController,
                      sink: OutcomeSink, monitor: Optional[PerformanceMonitor] = None) -> List[OutcomeRecord]:
    """
    Process records strictly in order. Each outcome is appended to the sink
    before the next record starts.
    """
    monitor = monitor or PerformanceMonitor(enable_monitoring=False)
    outcomes = []
    total = len(records)

    for index, record in enumerate(records, start=1):
        logger.info(f"===== Record {index}/{total}: {record.search_name} =====")
        async with monitor.measure_record(index, record.search_name) as metrics:
            outcome = await controller.process_record(record)
            if metrics is not None:
                metrics.status = outcome.status

        sink.append(outcome)
        outcomes.append(outcome)

    return outcomes


async def run_automation(config: EntryAutomationConfig, records: Sequence[InputRecord],
                         timestamp: str, started_at: float) -> List[OutcomeRecord]:
    """Open the session and run every record through the workflow controller"""
    output_dir = Path(config.run.output_dir)
    sink = OutcomeSink(output_dir, timestamp)
    monitor = PerformanceMonitor(enable_monitoring=config.automation.enable_performance_monitoring)
    monitor.start_run_monitoring(timestamp)

    if config.run.dry_run:
        logger.info("DRY RUN: forms will be filled and classified but never submitted")

    async with open_session(config) as driver:
        context = RunContext(
            driver=driver,
            secret=config.credentials.secret,
            timestamp=timestamp,
            started_at=started_at,
            dry_run=config.run.dry_run,
            pause_before_submit=config.run.pause_before_submit,
        )
        controller = EntryWorkflowController(context, config.site, config.timeouts)
        outcomes = await run_entries(records, controller, sink, monitor)

    monitor.stop_run_monitoring()
    if monitor.enable_monitoring:
        report = monitor.generate_run_report(timestamp)
        monitor.log_run_report(report)
        monitor.save_run_report(report, str(output_dir / f"{timestamp}.report.json"))

    return outcomes


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Enter consultation records into PharmOutcomes from a CSV file.")
    parser.add_argument("--input", help="CSV file of records (overrides INPUT_FILE)")
    parser.add_argument("--output-dir", help="Directory for the outcome CSV and run log (overrides OUTPUT_DIR)")
    parser.add_argument("--config", help="Optional JSON configuration file")
    parser.add_argument("--dry-run", action="store_true", help="Fill and classify forms without submitting")
    parser.add_argument("--pause-before-submit", action="store_true", help="Pause in the Playwright inspector before each submit")
    parser.add_argument("--headless", action="store_true", help="Run the browser without a window")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> dict:
    """CLI flags that were given; unset flags leave file and environment values alone"""
    return {
        "run": {
            "input_file": args.input,
            "output_dir": args.output_dir,
            "dry_run": True if args.dry_run else None,
            "pause_before_submit": True if args.pause_before_submit else None,
        },
        "automation_mode": {"headless": True if args.headless else None},
        "automation": {"log_level": args.log_level},
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main execution flow:
    1. Load and validate configuration
    2. Configure the run log
    3. Read input records
    4. Log in and process every record
    5. Report
    """
    started_at = time.monotonic()
    timestamp = new_run_timestamp()
    args = parse_args(argv)

    print("🚀 Starting PharmOutcomes Auto-Entry")
    print("--------------------------------")

    try:
        config = ConfigurationManager(args.config).load_configuration(build_overrides(args))
        configure_logging(Path(config.run.output_dir) / f"{timestamp}.log", config.automation.log_level)
        records = read_input_records(config.run.input_file)
        outcomes = asyncio.run(run_automation(config, records, timestamp, started_at))
    except RunAbortedError as e:
        logger.error(e.message)
        e.display_abort_message()

    succeeded = sum(1 for o in outcomes if status_succeeded(o.status))
    print(f"\n✅ Done: {succeeded}/{len(outcomes)} records succeeded")
    print(f"📁 Outcomes saved to {Path(config.run.output_dir) / f'{timestamp}.csv'}")
    return 0


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
