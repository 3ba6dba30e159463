"""Run telemetry: the metric series, the log stream, and the synthetic decay curve."""

from collections.abc import Callable, Iterable
from datetime import datetime

from forge.schemas.training import LogEntry, LogLevel, MetricSample

Clock = Callable[[], str]


def display_time() -> str:
    """Wall-clock time as shown next to log lines."""
    return datetime.now().strftime("%H:%M:%S")


class DecayCurve:
    """Closed-form loss/accuracy curves standing in for a real trainer.

    Loss decays geometrically towards a floor, accuracy rises towards a cap.
    Both are pure functions of the step number, so any run replays identically.
    """

    def __init__(
        self,
        initial_loss: float = 2.5,
        loss_decay: float = 0.97,
        loss_floor: float = 0.01,
        base_accuracy: float = 0.4,
        accuracy_gain: float = 0.6,
        accuracy_decay: float = 0.95,
        accuracy_cap: float = 0.99,
    ):
        self.initial_loss = initial_loss
        self.loss_decay = loss_decay
        self.loss_floor = loss_floor
        self.base_accuracy = base_accuracy
        self.accuracy_gain = accuracy_gain
        self.accuracy_decay = accuracy_decay
        self.accuracy_cap = accuracy_cap

    def loss(self, step: int) -> float:
        return max(self.loss_floor, self.initial_loss * self.loss_decay**step)

    def accuracy(self, step: int) -> float:
        return min(self.accuracy_cap, self.base_accuracy + self.accuracy_gain * (1 - self.accuracy_decay**step))

    def sample(self, step: int) -> MetricSample:
        return MetricSample(step=step, loss=self.loss(step), accuracy=self.accuracy(step))


class MetricSeries:
    """Append-only, step-ordered sequence of metric samples."""

    def __init__(self, samples: Iterable[MetricSample] = ()):
        self._samples: list[MetricSample] = []
        for sample in samples:
            self.append(sample)

    def append(self, sample: MetricSample) -> None:
        last = self.last
        if last is not None and sample.step <= last.step:
            raise ValueError(f"Step {sample.step} does not follow step {last.step}.")
        self._samples.append(sample)

    def read_all(self) -> tuple[MetricSample, ...]:
        """Snapshot of the series; later appends do not show up in it."""
        return tuple(self._samples)

    def clear(self) -> None:
        self._samples.clear()

    @property
    def last(self) -> MetricSample | None:
        return self._samples[-1] if self._samples else None

    @property
    def last_step(self) -> int:
        return self._samples[-1].step if self._samples else 0

    def __len__(self) -> int:
        return len(self._samples)


class LogStream:
    """Append-only run log in chronological order."""

    def __init__(self, entries: Iterable[LogEntry] = (), clock: Clock = display_time):
        self._entries: list[LogEntry] = list(entries)
        self._clock = clock

    def append(self, message: str, level: LogLevel = "info") -> LogEntry:
        entry = LogEntry(timestamp=self._clock(), level=level, message=message)
        self._entries.append(entry)
        return entry

    def read_all(self) -> tuple[LogEntry, ...]:
        return tuple(self._entries)

    def tail(self, n: int) -> tuple[LogEntry, ...]:
        if n <= 0:
            return ()
        return tuple(self._entries[-n:])

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
