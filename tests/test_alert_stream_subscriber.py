"""Tests for the AlertStreamSubscriber processor."""

import asyncio
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from hkvisor.models import CameraEvent, EventNotificationAlert
from hkvisor.task_processors.alert_stream_subscriber import AlertStreamSubscriber
from hkvisor.utils.time_utils import parse_camera_datetime


def alert(state, event_type="VMD", post_count=1):
    return EventNotificationAlert(event_type=event_type, event_state=state, post_count=post_count)


class FakeCamera:
    """Camera whose alert stream replays scripted connections."""

    def __init__(self, name, connections):
        self.name = name
        # Each connection is a list of alerts, optionally ending with an exception
        self.connections = list(connections)
        self.connect_count = 0

    async def stream_alerts(self):
        self.connect_count += 1
        if not self.connections:
            return
        for item in self.connections.pop(0):
            if isinstance(item, Exception):
                raise item
            yield item

    async def capture_snapshot(self, output_path):
        return output_path


@pytest.fixture
def dispatcher():
    dispatcher = Mock()
    dispatcher.add_work = AsyncMock()
    return dispatcher


def make_subscriber(mock_config, camera_config, camera, dispatcher, **kwargs):
    kwargs.setdefault("reconnect_delay", 0.01)
    kwargs.setdefault("max_reconnect_delay", 0.02)
    subscriber = AlertStreamSubscriber(mock_config, camera_config, camera, **kwargs)
    subscriber.set_dispatcher(dispatcher)
    return subscriber


def emitted(dispatcher):
    return [call.args[0] for call in dispatcher.add_work.call_args_list]


class TestHandleAlert:
    """The active/inactive state machine."""

    @pytest.fixture
    def subscriber(self, mock_config, front_door, dispatcher):
        return make_subscriber(mock_config, front_door, FakeCamera(front_door.name, []), dispatcher)

    def test_initially_inactive(self, subscriber):
        assert subscriber.active is False

    def test_first_active_emits(self, subscriber, front_door):
        event = subscriber.handle_alert(alert("active", "VMD"))

        assert isinstance(event, CameraEvent)
        assert event.camera == front_door
        assert event.event_type == "VMD"
        assert event.timestamp.tzinfo is not None
        assert subscriber.active is True

    def test_repeated_active_suppressed(self, subscriber):
        subscriber.handle_alert(alert("active"))

        assert subscriber.handle_alert(alert("active", post_count=2)) is None
        assert subscriber.handle_alert(alert("active", post_count=3)) is None
        assert subscriber.active is True

    def test_inactive_resets_without_emitting(self, subscriber):
        subscriber.handle_alert(alert("active"))

        assert subscriber.handle_alert(alert("inactive")) is None
        assert subscriber.active is False
        assert subscriber.handle_alert(alert("active")) is not None

    def test_inactive_while_inactive(self, subscriber):
        assert subscriber.handle_alert(alert("inactive")) is None
        assert subscriber.active is False

    @pytest.mark.parametrize("state", ["", "unknown", "ACTIVE"])
    def test_other_states_ignored(self, subscriber, state):
        assert subscriber.handle_alert(alert(state)) is None
        assert subscriber.active is False

        subscriber.handle_alert(alert("active"))
        assert subscriber.handle_alert(alert(state)) is None
        assert subscriber.active is True

    def test_alert_timestamp_used(self, subscriber):
        when = parse_camera_datetime("2023-05-01T12:00:00-04:00")
        record = EventNotificationAlert(event_type="VMD", event_state="active", date_time=when)

        assert subscriber.handle_alert(record).timestamp == when

    @pytest.mark.parametrize(
        "states, expected",
        [
            (["active"], 1),
            (["active", "active", "active"], 1),
            (["inactive", "inactive"], 0),
            (["active", "inactive", "active"], 2),
            (["active", "other", "active", "inactive", "active", "active"], 2),
            (["other", "active", "inactive", "inactive", "active", "inactive"], 2),
        ],
    )
    def test_emits_once_per_transition(self, subscriber, states, expected):
        events = [subscriber.handle_alert(alert(s)) for s in states]

        assert len([e for e in events if e is not None]) == expected


class TestConsumeStream:
    @pytest.mark.asyncio
    async def test_events_sent_to_dispatcher(self, mock_config, front_door, dispatcher):
        camera = FakeCamera(front_door.name, [[
            alert("active", "VMD"),
            alert("active", "VMD"),
            alert("inactive", "VMD"),
            alert("active", "linedetection"),
        ]])
        subscriber = make_subscriber(mock_config, front_door, camera, dispatcher)

        await subscriber.consume_stream()

        events = emitted(dispatcher)
        assert [e.event_type for e in events] == ["VMD", "linedetection"]
        assert all(e.camera == front_door for e in events)

    @pytest.mark.asyncio
    async def test_state_reset_on_connect(self, mock_config, front_door, dispatcher):
        camera = FakeCamera(front_door.name, [[alert("active")], [alert("active")]])
        subscriber = make_subscriber(mock_config, front_door, camera, dispatcher)

        await subscriber.consume_stream()
        await subscriber.consume_stream()

        assert len(emitted(dispatcher)) == 2

    @pytest.mark.asyncio
    async def test_without_dispatcher_events_are_dropped(self, mock_config, front_door):
        camera = FakeCamera(front_door.name, [[alert("active")]])
        subscriber = AlertStreamSubscriber(mock_config, front_door, camera)

        await subscriber.consume_stream()

        assert subscriber.active is True


class TestSupervision:
    @pytest.mark.asyncio
    async def test_clean_end_completes_without_reconnect(self, mock_config, front_door, dispatcher):
        camera = FakeCamera(front_door.name, [[alert("active")]])
        subscriber = make_subscriber(mock_config, front_door, camera, dispatcher)

        await subscriber.start()
        await asyncio.wait_for(subscriber.wait_closed(), timeout=1)

        assert camera.connect_count == 1
        assert subscriber.failures == 0
        assert not subscriber.degraded
        assert len(emitted(dispatcher)) == 1

    @pytest.mark.asyncio
    async def test_reconnects_after_failure(self, mock_config, front_door, dispatcher):
        camera = FakeCamera(front_door.name, [
            [alert("active"), httpx.ReadError("connection reset")],
            [httpx.ConnectError("refused")],
            [alert("active"), alert("inactive")],
        ])
        subscriber = make_subscriber(mock_config, front_door, camera, dispatcher)

        await subscriber.start()
        await asyncio.wait_for(subscriber.wait_closed(), timeout=1)

        assert camera.connect_count == 3
        # Flag starts over on every connection, so both connections emit
        assert len(emitted(dispatcher)) == 2
        assert not subscriber.degraded

    @pytest.mark.asyncio
    async def test_gives_up_after_max_reconnect_attempts(self, mock_config, front_door, dispatcher):
        camera = FakeCamera(front_door.name, [[httpx.ConnectError("refused")]] * 5)
        subscriber = make_subscriber(mock_config, front_door, camera, dispatcher, max_reconnect_attempts=2)

        await subscriber.start()
        await asyncio.wait_for(subscriber.wait_closed(), timeout=1)

        assert camera.connect_count == 3
        assert subscriber.degraded
        assert subscriber.get_status()["degraded"] is True
        dispatcher.add_work.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_does_not_affect_sibling(self, mock_config, front_door, back_yard, dispatcher):
        broken = FakeCamera(front_door.name, [[httpx.ConnectError("refused")]] * 3)
        healthy = FakeCamera(back_yard.name, [[alert("active")]])
        failing = make_subscriber(mock_config, front_door, broken, dispatcher, max_reconnect_attempts=1)
        working = make_subscriber(mock_config, back_yard, healthy, dispatcher)

        await failing.start()
        await working.start()
        await asyncio.wait_for(
            asyncio.gather(failing.wait_closed(), working.wait_closed()), timeout=1
        )

        assert failing.degraded
        assert not working.degraded
        assert [e.camera_name for e in emitted(dispatcher)] == ["Back Yard"]

    def test_backoff_doubles_up_to_limit(self, mock_config, front_door, dispatcher):
        subscriber = make_subscriber(
            mock_config, front_door, FakeCamera(front_door.name, []), dispatcher,
            reconnect_delay=5, max_reconnect_delay=30,
        )

        delays = []
        for failures in range(1, 6):
            subscriber.failures = failures
            delays.append(subscriber.get_backoff_delay())

        assert delays == [5, 10, 20, 30, 30]

    @pytest.mark.asyncio
    async def test_stop_cancels_blocked_stream(self, mock_config, front_door, dispatcher):
        class HangingCamera(FakeCamera):
            async def stream_alerts(self):
                self.connect_count += 1
                yield alert("active")
                await asyncio.Event().wait()

        camera = HangingCamera(front_door.name, [])
        subscriber = make_subscriber(mock_config, front_door, camera, dispatcher)

        await subscriber.start()
        await asyncio.sleep(0.05)
        await asyncio.wait_for(subscriber.stop(), timeout=1)

        assert subscriber.get_status()["running"] is False
        assert len(emitted(dispatcher)) == 1
