"""Tests for build phase metrics."""

import json

from sitewright.metrics import Metric, PerformanceMetrics


class TestMetric:
    def test_stop_freezes_duration(self):
        metric = Metric("Load")
        metric.stop()
        first = metric.duration
        metric.stop()
        assert metric.duration == first
        assert first >= 0

    def test_running_metric_has_duration(self):
        metric = Metric("Load")
        assert metric.stopped_at is None
        assert metric.duration >= 0

    def test_to_dict(self):
        metric = Metric("Save", started_at=1.0, stopped_at=1.5)
        assert metric.to_dict() == {"label": "Save", "duration_ms": 500.0}


class TestPerformanceMetrics:
    def test_start_records_metric(self):
        metrics = PerformanceMetrics()
        metric = metrics.start("Build (entire site)")
        assert metrics.metrics == [metric]
        assert metric.label == "Build (entire site)"

    def test_print_slowest_first(self, capsys):
        metrics = PerformanceMetrics()
        metrics.metrics.append(Metric("Fast", started_at=0.0, stopped_at=0.001))
        metrics.metrics.append(Metric("Slow", started_at=0.0, stopped_at=0.5))

        metrics.print()

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "Metrics:"
        assert "Slow" in lines[1]
        assert "Fast" in lines[2]

    def test_print_without_metrics(self, capsys):
        PerformanceMetrics().print()
        assert capsys.readouterr().out == ""

    def test_save_creates_parents(self, tmp_path):
        metrics = PerformanceMetrics()
        metrics.metrics.append(Metric("Copy (all files)", started_at=2.0, stopped_at=2.25))

        path = tmp_path / "reports" / "metrics.json"
        metrics.save(path)

        saved = json.loads(path.read_text())
        assert saved == [{"label": "Copy (all files)", "duration_ms": 250.0}]
