"""Unit tests for the run monitor."""

import json

import pytest

from performance_monitor import PerformanceMonitor, RecordMetrics


class TestMeasureRecord:

    async def test_records_metrics_with_status(self):
        monitor = PerformanceMonitor()
        monitor.start_run_monitoring("run")

        async with monitor.measure_record(1, "Smith, Jane") as metrics:
            metrics.status = "Success"

        assert len(monitor.record_metrics) == 1
        assert monitor.record_metrics[0].duration >= 0
        assert monitor.record_metrics[0].status_kind == "Success"

    async def test_disabled_monitor_yields_none(self):
        monitor = PerformanceMonitor(enable_monitoring=False)

        async with monitor.measure_record(1, "Smith, Jane") as metrics:
            assert metrics is None

        assert monitor.record_metrics == []


class TestRunReport:

    def test_report_requires_started_run(self):
        with pytest.raises(ValueError):
            PerformanceMonitor().generate_run_report("run")

    async def test_counts_outcome_kinds(self):
        # Arrange
        monitor = PerformanceMonitor()
        monitor.start_run_monitoring("run")
        for index, status in enumerate(["Success", "registeredOnly", "quantityRejected",
                                        "consultationValidationFailed: quantity: Too many"], start=1):
            async with monitor.measure_record(index, f"record {index}") as metrics:
                metrics.status = status
        monitor.stop_run_monitoring()

        # Act
        report = monitor.generate_run_report("run")

        # Assert
        assert report.records_processed == 4
        assert report.status_counts["consultationValidationFailed"] == 1
        assert report.success_rate == 50.0

    def test_save_report_as_json(self, tmp_path):
        monitor = PerformanceMonitor()
        monitor.start_run_monitoring("run")
        monitor.record_metrics.append(RecordMetrics(index=1, label="A", start_time=0.0,
                                                    memory_before=10.0, status="medicineNotFound"))
        report = monitor.generate_run_report("run")
        report_file = tmp_path / "run.report.json"

        assert monitor.save_run_report(report, str(report_file)) is True

        saved = json.loads(report_file.read_text(encoding="utf-8"))
        assert saved["run_id"] == "run"
        assert saved["status_counts"] == {"medicineNotFound": 1}
