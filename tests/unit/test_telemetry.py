import re

import pytest

from forge.schemas.training import LogEntry, MetricSample
from forge.services.training.telemetry import DecayCurve, LogStream, MetricSeries, display_time


class TestDecayCurve:
    def test_first_step(self):
        curve = DecayCurve()
        assert curve.loss(1) == pytest.approx(2.425)
        assert curve.accuracy(1) == pytest.approx(0.43)

    def test_loss_floor(self):
        curve = DecayCurve()
        assert curve.loss(1000) == 0.01

    def test_accuracy_cap(self):
        curve = DecayCurve()
        assert curve.accuracy(1000) == 0.99

    def test_loss_decreases_accuracy_increases(self):
        curve = DecayCurve()
        losses = [curve.loss(s) for s in range(1, 50)]
        accuracies = [curve.accuracy(s) for s in range(1, 50)]
        assert losses == sorted(losses, reverse=True)
        assert accuracies == sorted(accuracies)

    def test_sample_is_deterministic(self):
        assert DecayCurve().sample(12) == DecayCurve().sample(12)
        assert DecayCurve().sample(12).step == 12


class TestMetricSeries:
    def test_append_and_read(self):
        series = MetricSeries()
        series.append(MetricSample(step=1, loss=2.0, accuracy=0.4))
        series.append(MetricSample(step=2, loss=1.9, accuracy=0.45))

        assert len(series) == 2
        assert series.last_step == 2
        assert series.last.loss == 1.9

    def test_rejects_non_increasing_step(self):
        series = MetricSeries([MetricSample(step=3, loss=1.0, accuracy=0.5)])
        with pytest.raises(ValueError):
            series.append(MetricSample(step=3, loss=0.9, accuracy=0.5))
        with pytest.raises(ValueError):
            series.append(MetricSample(step=2, loss=0.9, accuracy=0.5))

    def test_read_all_is_a_snapshot(self):
        series = MetricSeries()
        series.append(MetricSample(step=1, loss=2.0, accuracy=0.4))
        snapshot = series.read_all()
        series.append(MetricSample(step=2, loss=1.9, accuracy=0.45))

        assert len(snapshot) == 1
        assert len(series.read_all()) == 2

    def test_empty(self):
        series = MetricSeries()
        assert series.last is None
        assert series.last_step == 0
        assert series.read_all() == ()

    def test_clear(self):
        series = MetricSeries([MetricSample(step=1, loss=2.0, accuracy=0.4)])
        series.clear()
        assert len(series) == 0
        series.append(MetricSample(step=1, loss=2.0, accuracy=0.4))
        assert series.last_step == 1


class TestLogStream:
    def test_append_uses_clock(self):
        stream = LogStream(clock=lambda: "09:30:00")
        entry = stream.append("hello")

        assert entry == LogEntry(timestamp="09:30:00", level="info", message="hello")
        assert stream.read_all() == (entry,)

    def test_levels(self):
        stream = LogStream(clock=lambda: "t")
        stream.append("a", "warn")
        stream.append("b", "success")
        assert [e.level for e in stream.read_all()] == ["warn", "success"]

    def test_tail(self):
        stream = LogStream(clock=lambda: "t")
        for i in range(5):
            stream.append(f"line {i}")

        assert [e.message for e in stream.tail(2)] == ["line 3", "line 4"]
        assert stream.tail(0) == ()
        assert len(stream.tail(50)) == 5

    def test_seeded_entries(self):
        seed = [LogEntry(timestamp="t", level="info", message="restored")]
        stream = LogStream(seed, clock=lambda: "t")
        stream.append("next")
        assert [e.message for e in stream.read_all()] == ["restored", "next"]
        assert len(seed) == 1


def test_display_time_format():
    assert re.fullmatch(r"\d{2}:\d{2}:\d{2}", display_time())
