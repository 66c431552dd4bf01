#!/usr/bin/env python3
"""
Performance Monitor for PharmOutcomes Auto-Entry

This module provides run monitoring including:
- Timing of each processed record
- Process memory usage around each record
- An end-of-run report with outcome counts, saved as JSON
"""

import time
import psutil
import logging
import json
from collections import Counter, deque
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional

from outcomes import status_succeeded

logger = logging.getLogger(__name__)

SLOW_RECORD_SECONDS = 60.0

@dataclass
class RecordMetrics:
    """Timing and memory for a single processed record"""
    index: int
    label: str
    start_time: float
    memory_before: float
    end_time: float = 0.0
    duration: float = 0.0
    memory_after: float = 0.0
    status: str = ""

    @property
    def status_kind(self) -> str:
        return self.status.split(":", 1)[0].strip()

@dataclass
class RunReport:
    """Summary of a complete run"""
    run_id: str
    start_time: float
    end_time: float
    total_duration: float
    records_processed: int
    status_counts: Dict[str, int]
    success_rate: float
    average_record_duration: float
    memory_peak_mb: float
    record_metrics: List[RecordMetrics] = field(default_factory=list)

class PerformanceMonitor:
    """
    Tracks how long each record takes and how much memory the run uses
    """

    def __init__(self, enable_monitoring: bool = True):
        self.enable_monitoring = enable_monitoring
        self.record_metrics: List[RecordMetrics] = []
        self.memory_samples: deque = deque(maxlen=1000)
        self.run_start_time: Optional[float] = None
        self.run_end_time: Optional[float] = None

        logger.info("Performance Monitor initialized")

    def start_run_monitoring(self, run_id: str):
        """Start monitoring for a new run"""
        if not self.enable_monitoring:
            return

        self.run_start_time = time.time()
        self.run_end_time = None
        self.record_metrics.clear()
        self.memory_samples.clear()
        self.memory_samples.append(self._get_current_memory_usage())

        logger.info(f"Performance monitoring started for run: {run_id}")

    def stop_run_monitoring(self):
        """Stop monitoring"""
        if not self.enable_monitoring:
            return

        self.run_end_time = time.time()
        logger.info("Performance monitoring stopped")

    @asynccontextmanager
    async def measure_record(self, index: int, label: str):
        """
        Async context manager timing one record. Yields the RecordMetrics entry
        (or None when monitoring is disabled) so the caller can set its status.
        """
        if not self.enable_monitoring:
            yield None
            return

        memory_before = self._get_current_memory_usage()
        metrics = RecordMetrics(index=index, label=label, start_time=time.time(),
                                memory_before=memory_before)
        try:
            yield metrics
        finally:
            metrics.end_time = time.time()
            metrics.duration = metrics.end_time - metrics.start_time
            metrics.memory_after = self._get_current_memory_usage()
            self.memory_samples.append(metrics.memory_after)
            self.record_metrics.append(metrics)

            if metrics.duration > SLOW_RECORD_SECONDS:
                logger.info(f"Performance: record {index} ({label}) took {metrics.duration:.2f}s, "
                            f"memory delta: {metrics.memory_after - metrics.memory_before:.2f}MB")

    def _get_current_memory_usage(self) -> float:
        """Get current memory usage in MB"""
        try:
            process = psutil.Process()
            return process.memory_info().rss / 1024 / 1024
        except psutil.Error:
            return 0.0

    def generate_run_report(self, run_id: str) -> RunReport:
        """Generate the end-of-run report"""
        if not self.run_start_time:
            raise ValueError("Run monitoring not started")

        end_time = self.run_end_time or time.time()
        processed = len(self.record_metrics)
        counts = Counter(m.status_kind for m in self.record_metrics)
        successes = sum(1 for m in self.record_metrics if status_succeeded(m.status))

        return RunReport(
            run_id=run_id,
            start_time=self.run_start_time,
            end_time=end_time,
            total_duration=end_time - self.run_start_time,
            records_processed=processed,
            status_counts=dict(counts),
            success_rate=(successes / processed * 100) if processed > 0 else 0.0,
            average_record_duration=(sum(m.duration for m in self.record_metrics) / processed) if processed > 0 else 0.0,
            memory_peak_mb=max(self.memory_samples) if self.memory_samples else 0.0,
            record_metrics=self.record_metrics.copy(),
        )

    def log_run_report(self, report: RunReport):
        """Log a concise summary of the report"""
        logger.info(f"Run {report.run_id}: {report.records_processed} records in "
                    f"{report.total_duration:.1f}s, success rate {report.success_rate:.1f}%")
        for status, count in sorted(report.status_counts.items()):
            logger.info(f"  {status}: {count}")
        logger.info(f"  average per record: {report.average_record_duration:.1f}s, "
                    f"memory peak: {report.memory_peak_mb:.1f}MB")

    def save_run_report(self, report: RunReport, file_path: str) -> bool:
        """Save run report to JSON file"""
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(asdict(report), f, indent=2, default=str)

            logger.info(f"Run report saved to: {file_path}")
            return True

        except OSError as e:
            logger.error(f"Error saving run report: {e}")
            return False
