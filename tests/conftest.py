from __future__ import annotations

from collections import defaultdict, deque
from typing import Any, Callable

import pytest

from wcefp.client.actions import ActionRequest, AjaxEnvelope
from wcefp.client.transport import decode_response


class FakeTimer:
    def __init__(self, when: float, delay: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Virtual clock; callbacks only run when the test advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [timer for timer in self.timers if not timer.cancelled and not timer.fired]

    def pending_delays(self) -> list[float]:
        return [timer.delay for timer in self.pending]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted((timer for timer in self.pending if timer.when <= target), key=lambda timer: timer.when)
            if not due:
                break
            timer = due[0]
            self.now = timer.when
            timer.fired = True
            timer.callback()
        self.now = target


class FakeTransport:
    """Replies are queued per action: a data payload, an envelope, an exception or a callable."""

    def __init__(self) -> None:
        self.requests: list[ActionRequest] = []
        self._replies: dict[str, deque[Any]] = defaultdict(deque)

    def queue(self, action: str, reply: Any) -> None:
        self._replies[action].append(reply)

    def fail(self, action: str, message: str) -> None:
        self.queue(action, AjaxEnvelope(success=False, data={"message": message}))

    def actions(self) -> list[str]:
        return [request.action for request in self.requests]

    def send(self, request: ActionRequest) -> AjaxEnvelope:
        self.requests.append(request)
        replies = self._replies.get(request.action)
        if not replies:
            raise AssertionError(f"No reply queued for {request.action}")
        reply = replies.popleft()
        if callable(reply) and not isinstance(reply, type):
            reply = reply(request)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, AjaxEnvelope):
            return reply
        return AjaxEnvelope(success=True, data=reply)

    def call(self, request: ActionRequest) -> Any:
        return decode_response(request, self.send(request))


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()
