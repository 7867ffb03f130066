"""Test doubles for the sender components."""

import datetime

from nmea_location_sender.channel import SendCompletionError, TransportError
from nmea_location_sender.models import ChannelState, Endpoint, HeadingSample, PositionSample
from nmea_location_sender.sources import SampleListener, SampleSource

T0 = datetime.datetime(2025, 1, 1, 12, 0, 0, tzinfo=datetime.UTC)


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle:
    def __init__(self, scheduler: "FakeScheduler", due: float, function) -> None:
        self.scheduler = scheduler
        self.due = due
        self.function = function
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Collects delayed tasks; run them by advancing a fake time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.tasks: list[FakeHandle] = []

    def call_later(self, delay: float, function) -> FakeHandle:
        handle = FakeHandle(self, self.now + delay, function)
        self.tasks.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [task for task in self.tasks if not task.cancelled]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [task for task in self.pending if task.due <= self.now + 1e-9]
        for task in due:
            self.tasks.remove(task)
            task.function()


class FakeChannel:
    """Channel whose state is driven by the test; sends succeed unless told otherwise."""

    instances: list["FakeChannel"] = []

    def __init__(self, endpoint: Endpoint, on_state_change, ready_on_open: bool = True) -> None:
        self.endpoint = endpoint
        self.on_state_change = on_state_change
        self.ready_on_open = ready_on_open
        self.state = ChannelState.IDLE
        self.sent: list[str] = []
        self.pending: list[tuple[str, object]] = []
        self.complete_immediately = True
        self.send_error: TransportError | None = None
        FakeChannel.instances.append(self)

    def open(self) -> None:
        self.set_state(ChannelState.CONNECTING)
        if self.ready_on_open:
            self.set_state(ChannelState.READY)

    def cancel(self) -> None:
        self.set_state(ChannelState.CANCELLED)

    def set_state(self, state: ChannelState, error: TransportError | None = None) -> None:
        self.state = state
        self.on_state_change(self, state, error)

    def send(self, line: str, completion=None) -> None:
        if self.state is ChannelState.CANCELLED:
            if completion is not None:
                completion(SendCompletionError("Channel is cancelled"))
            return
        self.sent.append(line)
        if self.complete_immediately:
            if completion is not None:
                completion(self.send_error)
        else:
            self.pending.append((line, completion))

    def complete_all(self, error: TransportError | None = None) -> None:
        pending, self.pending = self.pending, []
        for _, completion in pending:
            if completion is not None:
                completion(error)


class FakeTimer:
    instances: list["FakeTimer"] = []

    def __init__(self, interval: float, function, name: str = "") -> None:
        self.interval = interval
        self.function = function
        self.name = name
        self.started = False
        self.cancelled = False
        FakeTimer.instances.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def tick(self) -> None:
        self.function()


class RecordingSource(SampleSource):
    """Sample source fed by the test."""

    def __init__(self) -> None:
        self.listener: SampleListener | None = None
        self.started = 0
        self.stopped = 0
        self._last_position: PositionSample | None = None
        self._last_heading: HeadingSample | None = None

    def start(self, listener: SampleListener) -> None:
        self.listener = listener
        self.started += 1

    def stop(self) -> None:
        self.listener = None
        self.stopped += 1

    @property
    def last_position(self) -> PositionSample | None:
        return self._last_position

    @property
    def last_heading(self) -> HeadingSample | None:
        return self._last_heading

    def push_position(self, sample: PositionSample) -> None:
        self._last_position = sample
        if self.listener is not None:
            self.listener.on_position(sample)

    def push_heading(self, sample: HeadingSample) -> None:
        self._last_heading = sample
        if self.listener is not None:
            self.listener.on_heading(sample)
