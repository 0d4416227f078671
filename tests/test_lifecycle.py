"""Tests for the start/run/stop state machine."""

import pytest

from smartserver.core.config import TeardownPolicy
from smartserver.core.errors import (
    LifecycleError,
    RouterStartError,
    RouterStopError,
    RunLoopError,
)
from smartserver.core.lifecycle import Lifecycle, LifecycleState


class FakeRouter:
    def __init__(self, events, fail_start=False, fail_stop=False):
        self._events = events
        self.fail_start = fail_start
        self.fail_stop = fail_stop

    def start(self):
        self._events.append("router.start")
        if self.fail_start:
            raise OSError("address in use")

    def stop(self):
        self._events.append("router.stop")
        if self.fail_stop:
            raise OSError("gossip socket closed")


class FakeService:
    server_id = "srv-1"
    registry = None

    def __init__(self, events, error=None):
        self._events = events
        self.error = error

    def run(self):
        self._events.append("service.run")
        if self.error is not None:
            raise self.error


S = LifecycleState


def test_run_success_stops_router_once():
    events = []
    lifecycle = Lifecycle(FakeRouter(events), FakeService(events))
    lifecycle.run()
    assert events == ["router.start", "service.run", "router.stop"]
    assert lifecycle.state is S.STOPPED
    assert lifecycle.history == [S.IDLE, S.STARTING, S.RUNNING, S.STOPPING, S.STOPPED]


def test_router_start_failure_never_stops_or_runs():
    events = []
    lifecycle = Lifecycle(FakeRouter(events, fail_start=True), FakeService(events))
    with pytest.raises(RouterStartError, match="address in use") as excinfo:
        lifecycle.run()
    assert events == ["router.start"]
    assert S.RUNNING not in lifecycle.history
    assert lifecycle.history == [S.IDLE, S.STARTING, S.FAILED]
    assert isinstance(excinfo.value.original_error, OSError)


def test_router_stop_failure_is_fatal():
    events = []
    lifecycle = Lifecycle(FakeRouter(events, fail_stop=True), FakeService(events))
    with pytest.raises(RouterStopError, match="failed to stop router: gossip socket closed"):
        lifecycle.run()
    assert events.count("router.stop") == 1
    assert lifecycle.history[-2:] == [S.STOPPING, S.FAILED]


def test_run_loop_error_attempts_teardown_by_default():
    events = []
    error = RuntimeError("transport closed")
    lifecycle = Lifecycle(FakeRouter(events), FakeService(events, error=error))
    with pytest.raises(RunLoopError, match="transport closed") as excinfo:
        lifecycle.run()
    assert events == ["router.start", "service.run", "router.stop"]
    assert lifecycle.history == [S.IDLE, S.STARTING, S.RUNNING, S.STOPPING, S.FAILED]
    assert excinfo.value.original_error is error
    assert excinfo.value.teardown_error is None


def test_run_loop_error_with_failing_teardown_keeps_both_errors():
    events = []
    lifecycle = Lifecycle(
        FakeRouter(events, fail_stop=True),
        FakeService(events, error=RuntimeError("transport closed")),
    )
    with pytest.raises(RunLoopError) as excinfo:
        lifecycle.run()
    assert isinstance(excinfo.value.teardown_error, OSError)
    assert lifecycle.state is S.FAILED


def test_skip_on_error_policy_fails_directly():
    events = []
    lifecycle = Lifecycle(
        FakeRouter(events),
        FakeService(events, error=RuntimeError("transport closed")),
        teardown_policy=TeardownPolicy.SKIP_ON_ERROR,
    )
    with pytest.raises(RunLoopError):
        lifecycle.run()
    assert "router.stop" not in events
    assert lifecycle.history == [S.IDLE, S.STARTING, S.RUNNING, S.FAILED]


def test_teardown_policy_accepts_string_values():
    lifecycle = Lifecycle(FakeRouter([]), FakeService([]), teardown_policy="skip_on_error")
    assert lifecycle.teardown_policy is TeardownPolicy.SKIP_ON_ERROR


def test_start_and_stop_are_not_reentrant():
    events = []
    lifecycle = Lifecycle(FakeRouter(events), FakeService(events))
    with pytest.raises(LifecycleError, match="cannot stop from state 'idle'"):
        lifecycle.stop()
    lifecycle.start()
    assert lifecycle.state is S.RUNNING
    with pytest.raises(LifecycleError, match="cannot start from state 'running'"):
        lifecycle.start()
    lifecycle.stop()
    with pytest.raises(LifecycleError):
        lifecycle.stop()
    assert events == ["router.start", "router.stop"]


def test_lifecycle_logs_progress(caplog):
    caplog.set_level("INFO", logger="smartserver")
    events = []
    Lifecycle(FakeRouter(events), FakeService(events)).run()
    messages = [record.getMessage() for record in caplog.records]
    assert messages == [
        "starting micro server",
        "successfully started",
        "stopping server",
        "successfully stopped",
    ]


@pytest.mark.parametrize("interrupt", [KeyboardInterrupt(), SystemExit(3)])
def test_interrupted_run_loop_still_stops_router(interrupt):
    events = []
    lifecycle = Lifecycle(FakeRouter(events), FakeService(events, error=interrupt))
    with pytest.raises(type(interrupt)):
        lifecycle.run()
    assert events.count("router.stop") == 1
    assert lifecycle.history[-2:] == [S.STOPPING, S.FAILED]


def test_interrupted_run_loop_skips_teardown_when_configured():
    events = []
    lifecycle = Lifecycle(
        FakeRouter(events),
        FakeService(events, error=KeyboardInterrupt()),
        teardown_policy=TeardownPolicy.SKIP_ON_ERROR,
    )
    with pytest.raises(KeyboardInterrupt):
        lifecycle.run()
    assert "router.stop" not in events
    assert lifecycle.history[-2:] == [S.RUNNING, S.FAILED]
