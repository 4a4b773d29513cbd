"""Tests for data models."""

from pydantic import ValidationError
import pytest

from hostsampler.models import CpuMetrics, CpuTimes, MetricsSnapshot


class TestCpuTimes:
    def test_totals(self) -> None:
        times = CpuTimes("cpu0", 10, 1, 5, 100, 4, 2, 3)
        assert times.total == 125
        assert times.non_idle == 21


class TestCpuMetrics:
    def test_defaults(self) -> None:
        metrics = CpuMetrics()
        assert metrics.total is None
        assert metrics.cores == {}

    def test_percent_bounds(self) -> None:
        with pytest.raises(ValidationError):
            CpuMetrics(total=100.5)

    def test_fields_cannot_be_reassigned(self) -> None:
        metrics = CpuMetrics(total=1.0, cores={0: 2.0})
        with pytest.raises(ValidationError):
            metrics.cores = {}  # type: ignore[misc]


class TestMetricsSnapshot:
    def test_timestamp_required(self) -> None:
        with pytest.raises(ValidationError):
            MetricsSnapshot(timestamp="")

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MetricsSnapshot(timestamp="now", disk={})

    def test_sections_cannot_be_reassigned(self) -> None:
        snapshot = MetricsSnapshot(timestamp="now", memory={"free": 1})
        with pytest.raises(ValidationError):
            snapshot.cpu = CpuMetrics()  # type: ignore[misc]
