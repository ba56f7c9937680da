"""Unit tests for LocationCoordinator."""

import logging
import random
import threading
from unittest.mock import patch

import pytest

from locshare.constants import ACCURACY_THREE_KILOMETERS
from locshare.location import coordinator as coordinator_module
from locshare.location.coordinator import LocationCoordinator, RegistrationResult, shared_coordinator
from locshare.location.device import AuthorizationStatus
from locshare.location.dummy_device import DummyLocationDevice
from locshare.location.errors import AlreadyRegisteredError, MonitoringUnavailableError
from locshare.location.executors import InlineExecutor
from locshare.location.gpsd_device import GpsdLocationDevice
from locshare.location.reading import LocationReading
from locshare.logging import LOCSHARE_LOGGER
from locshare.settings import LocShareSettings

FALLBACK = ACCURACY_THREE_KILOMETERS


@pytest.fixture
def device():
    return DummyLocationDevice()


@pytest.fixture
def coordinator(device):
    return LocationCoordinator(device=device, settings=LocShareSettings())


@pytest.fixture
def inline():
    return InlineExecutor()


def _noop(reading):
    pass


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_init_applies_fallback_and_installs_delegate(coordinator, device):
    assert device.desired_accuracy == FALLBACK
    assert device.delegate is coordinator
    assert coordinator.current_accuracy == FALLBACK
    assert coordinator.is_active is False
    assert device.start_calls == 0


def test_custom_fallback_from_settings(device):
    coord = LocationCoordinator(device=device, settings=LocShareSettings(fallback_accuracy=5000.0))
    assert coord.current_accuracy == 5000.0
    assert device.desired_accuracy == 5000.0


def test_log_level_from_settings(device):
    try:
        LocationCoordinator(device=device, settings=LocShareSettings(log_level="DEBUG"))
        assert LOCSHARE_LOGGER.level == logging.DEBUG
    finally:
        LOCSHARE_LOGGER.setLevel(logging.INFO)


def test_default_device_is_gpsd():
    coord = LocationCoordinator(settings=LocShareSettings(gpsd_command="my-gpspipe"))
    assert isinstance(coord.device, GpsdLocationDevice)
    assert coord.device.command == "my-gpspipe"


def test_shared_coordinator_is_lazy_singleton():
    with patch.object(coordinator_module, "_shared", None):
        first = shared_coordinator()
        second = LocationCoordinator.shared()
        assert first is second
        assert isinstance(first.device, GpsdLocationDevice)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def test_register_success(coordinator, device, inline):
    result = coordinator.register("a", 100.0, _noop, executor=inline)
    assert result == RegistrationResult(success=True)
    assert bool(result) is True
    assert result.error is None
    assert coordinator.monitor_count == 1
    assert coordinator.is_active is True
    assert device.running is True


def test_register_uses_main_executor_by_default(coordinator):
    with patch("locshare.location.coordinator.main_executor") as mock_main:
        coordinator.register("a", 100.0, _noop)
    mock_main.assert_called_once_with("locshare-main")
    assert coordinator.find_monitor("a").executor is mock_main.return_value


def test_register_twice_returns_already_registered(coordinator, inline):
    coordinator.register("a", 1000.0, _noop, executor=inline)
    result = coordinator.register("a", 10.0, _noop, executor=inline)
    assert result.success is False
    assert bool(result) is False
    assert isinstance(result.error, AlreadyRegisteredError)
    assert result.error.code == 1
    assert coordinator.monitor_count == 1
    assert coordinator.find_monitor("a").desired_accuracy == 1000.0
    assert coordinator.current_accuracy == 1000.0


def test_register_when_unavailable(inline):
    device = DummyLocationDevice(enabled=False)
    coord = LocationCoordinator(device=device, settings=LocShareSettings())
    result = coord.register("a", 100.0, _noop, executor=inline)
    assert result.success is False
    assert isinstance(result.error, MonitoringUnavailableError)
    assert result.error.code == 0
    assert str(result.error) == "Location monitoring unavailable."
    assert coord.monitor_count == 0
    assert coord.current_accuracy == FALLBACK
    assert device.start_calls == 0


def test_register_compat_success(coordinator, inline):
    errors = []
    assert coordinator.register_compat("a", 100.0, _noop, errors, executor=inline) is True
    assert errors == []
    assert coordinator.monitor_count == 1


def test_register_compat_failure_fills_error_out(coordinator, inline):
    errors = []
    coordinator.register("a", 100.0, _noop, executor=inline)
    assert coordinator.register_compat("a", 100.0, _noop, errors, executor=inline) is False
    assert len(errors) == 1
    assert isinstance(errors[0], AlreadyRegisteredError)


def test_register_compat_without_error_out(coordinator, inline):
    coordinator.register("a", 100.0, _noop, executor=inline)
    assert coordinator.register_compat("a", 100.0, _noop, executor=inline) is False


def test_deregister_unknown_is_noop(coordinator, device, inline):
    coordinator.register("a", 100.0, _noop, executor=inline)
    coordinator.deregister("never-registered")
    assert coordinator.monitor_count == 1
    assert coordinator.current_accuracy == 100.0
    assert device.stop_calls == 0


def test_deregister_on_empty_registry(coordinator, device):
    coordinator.deregister("nobody")
    assert coordinator.monitor_count == 0
    assert coordinator.current_accuracy == FALLBACK
    assert device.stop_calls == 0


def test_reregister_after_deregister(coordinator, inline):
    coordinator.register("a", 100.0, _noop, executor=inline)
    coordinator.deregister("a")
    assert coordinator.register("a", 10.0, _noop, executor=inline).success is True
    assert coordinator.current_accuracy == 10.0


# ---------------------------------------------------------------------------
# Accuracy reconciliation and device lifecycle
# ---------------------------------------------------------------------------


def test_accuracy_scenario(coordinator, device, inline):
    coordinator.register("A", 1000.0, _noop, executor=inline)
    coordinator.register("B", 100.0, _noop, executor=inline)
    assert coordinator.current_accuracy == 100.0
    assert device.desired_accuracy == 100.0

    coordinator.deregister("B")
    assert coordinator.current_accuracy == 1000.0
    assert device.desired_accuracy == 1000.0
    assert device.stop_calls == 0

    coordinator.deregister("A")
    assert device.stop_calls == 1
    assert device.running is False
    assert coordinator.current_accuracy == FALLBACK
    assert device.desired_accuracy == FALLBACK


def test_accuracy_applied_after_every_mutation(coordinator, device, inline):
    coordinator.register("a", 500.0, _noop, executor=inline)
    coordinator.register("b", 50.0, _noop, executor=inline)
    coordinator.deregister("b")
    # Fallback applied at construction, then once per mutation
    assert device.accuracy_history == [FALLBACK, 500.0, 50.0, 500.0]


def test_start_and_stop_only_on_transitions(coordinator, device, inline):
    coordinator.register("a", 100.0, _noop, executor=inline)
    coordinator.register("b", 100.0, _noop, executor=inline)
    coordinator.register("c", 100.0, _noop, executor=inline)
    assert device.start_calls == 1

    coordinator.deregister("a")
    coordinator.deregister("b")
    assert device.stop_calls == 0
    coordinator.deregister("c")
    assert device.stop_calls == 1

    coordinator.register("d", 100.0, _noop, executor=inline)
    assert device.start_calls == 2


def test_random_sequences_keep_invariants(coordinator, device, inline):
    rng = random.Random(1234)
    expected = {}
    was_active = False
    starts = stops = 0

    for _ in range(300):
        identity = rng.randrange(12)
        if rng.random() < 0.55:
            accuracy = rng.choice([-1.0, 10.0, 100.0, 1000.0, 3000.0])
            result = coordinator.register(identity, accuracy, _noop, executor=inline)
            if identity in expected:
                assert isinstance(result.error, AlreadyRegisteredError)
            else:
                assert result.success
                expected[identity] = accuracy
        else:
            coordinator.deregister(identity)
            expected.pop(identity, None)

        is_active = bool(expected)
        if is_active and not was_active:
            starts += 1
        if was_active and not is_active:
            stops += 1
        was_active = is_active

        assert coordinator.monitor_count == len(expected)
        assert coordinator.current_accuracy == min(expected.values(), default=FALLBACK)
        assert device.desired_accuracy == coordinator.current_accuracy
        assert device.running is is_active

    assert device.start_calls == starts
    assert device.stop_calls == stops


def test_concurrent_registration_is_serialized(coordinator, device, inline):
    def worker(offset):
        for i in range(50):
            coordinator.register((offset, i), float(offset * 100 + i), _noop, executor=inline)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(1, 5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert coordinator.monitor_count == 200
    assert coordinator.current_accuracy == 100.0
    assert device.start_calls == 1


# ---------------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------------


def test_readings_fan_out_to_all_monitors(coordinator, device, inline):
    got_a, got_b = [], []
    coordinator.register("a", 100.0, got_a.append, executor=inline)
    coordinator.register("b", 10.0, got_b.append, executor=inline)

    first = LocationReading(latitude=1.0, longitude=1.0)
    second = LocationReading(latitude=2.0, longitude=2.0)
    device.emit(first, second)

    assert got_a == [first, second]
    assert got_b == [first, second]


def test_sink_objects_receive_readings(coordinator, device, inline):
    class Sink:
        def __init__(self):
            self.readings = []

        def deliver(self, reading):
            self.readings.append(reading)

    sink = Sink()
    coordinator.register("sink", 100.0, sink, executor=inline)
    device.emit()
    assert len(sink.readings) == 1


def test_deregistered_monitor_stops_receiving(coordinator, device, inline):
    got = []
    coordinator.register("a", 100.0, got.append, executor=inline)
    coordinator.register("b", 100.0, _noop, executor=inline)
    device.emit()
    coordinator.deregister("a")
    device.emit()
    assert len(got) == 1


def test_late_monitor_misses_earlier_readings(coordinator, device, inline):
    coordinator.register("a", 100.0, _noop, executor=inline)
    device.emit()
    got = []
    coordinator.register("b", 100.0, got.append, executor=inline)
    assert got == []


def test_deregister_during_fan_out_does_not_crash(coordinator, device, inline):
    got_b = []

    def deregister_b(reading):
        coordinator.deregister("b")

    coordinator.register("a", 100.0, deregister_b, executor=inline)
    coordinator.register("b", 100.0, got_b.append, executor=inline)

    device.emit(LocationReading(latitude=1.0, longitude=1.0), LocationReading(latitude=2.0, longitude=2.0))

    # Snapshot taken before fan-out: b receives the whole batch
    assert len(got_b) == 2
    assert coordinator.monitor_count == 1


def test_failing_monitor_does_not_affect_others(coordinator, device, inline):
    def explode(reading):
        raise RuntimeError("boom")

    got = []
    coordinator.register("bad", 100.0, explode, executor=inline)
    coordinator.register("good", 100.0, got.append, executor=inline)
    device.emit()
    assert len(got) == 1


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------


def test_permission_grant_starts_device_with_monitors(inline):
    device = DummyLocationDevice(status=AuthorizationStatus.NOT_DETERMINED)
    coord = LocationCoordinator(device=device, settings=LocShareSettings())

    assert coord.register("a", 100.0, _noop, executor=inline).success is True
    assert device.start_calls == 0
    assert coord.is_running is False

    device.set_authorization_status(AuthorizationStatus.AUTHORIZED_ALWAYS)

    assert device.start_calls == 1
    assert coord.is_running is True


def test_permission_grant_without_monitors_does_not_start(coordinator, device):
    device.set_authorization_status(AuthorizationStatus.AUTHORIZED_WHEN_IN_USE)
    assert device.start_calls == 0


def test_requires_foreground_triggers_request_each_assignment(coordinator, device):
    coordinator.requires_foreground = True
    coordinator.requires_foreground = True
    assert device.when_in_use_requests == 2
    assert coordinator.requires_foreground is True


def test_requires_false_has_no_effect(coordinator, device):
    coordinator.requires_foreground = False
    coordinator.requires_always = False
    assert device.when_in_use_requests == 0
    assert device.always_requests == 0


def test_requires_always_triggers_request(coordinator, device):
    coordinator.requires_always = True
    assert device.always_requests == 1
    assert device.when_in_use_requests == 0


def test_requires_always_prompt_grant_starts_pending_monitors(inline):
    device = DummyLocationDevice(status=AuthorizationStatus.NOT_DETERMINED, grant_on_request=True)
    coord = LocationCoordinator(device=device, settings=LocShareSettings())
    coord.register("a", 100.0, _noop, executor=inline)

    coord.requires_always = True

    assert coord.is_permitted_always is True
    assert device.running is True


@pytest.mark.parametrize(
    "status,denied,foreground,always",
    [
        (AuthorizationStatus.NOT_DETERMINED, False, False, False),
        (AuthorizationStatus.DENIED, True, False, False),
        (AuthorizationStatus.AUTHORIZED_WHEN_IN_USE, False, True, False),
        (AuthorizationStatus.AUTHORIZED_ALWAYS, False, False, True),
    ],
)
def test_permission_queries_reflect_state(status, denied, foreground, always):
    coord = LocationCoordinator(device=DummyLocationDevice(status=status), settings=LocShareSettings())
    assert coord.permission_state == status
    assert coord.is_denied is denied
    assert coord.is_permitted_foreground is foreground
    assert coord.is_permitted_always is always


def test_is_available_reflects_device(device, coordinator):
    assert coordinator.is_available is True
    device.enabled = False
    assert coordinator.is_available is False
