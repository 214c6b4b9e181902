from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from sacn_testgen.core.config import TransmitterConfig
from sacn_testgen.core.exceptions import (
    RangeError,
    TransmissionError,
    UniverseNotRegisteredError,
)
from sacn_testgen.dmx.e131 import E131Transmitter
from sacn_testgen.dmx.universe import build_static


class FakeOutput:
    def __init__(self) -> None:
        self.dmx_data: tuple = ()
        self.multicast = False
        self.destination = "127.0.0.1"
        self.ttl = 0
        self.priority = 0
        self.preview_data = False


class FakeSender:
    """Stand-in for sacn.sACNsender that records calls instead of sending."""

    def __init__(self, error: Optional[OSError] = None, **kwargs) -> None:
        self.kwargs = kwargs
        self.error = error
        self.started = False
        self.stopped = False
        self.outputs: Dict[int, FakeOutput] = {}
        self.deactivated: List[int] = []
        self.flushes: List[tuple] = []
        self.manual_flush = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def activate_output(self, universe: int) -> None:
        self.outputs[universe] = FakeOutput()

    def deactivate_output(self, universe: int) -> None:
        if self.error is not None:
            raise self.error
        self.deactivated.append(universe)
        del self.outputs[universe]

    def __getitem__(self, universe: int) -> FakeOutput:
        return self.outputs[universe]

    def flush(self, universes: List[int]) -> None:
        if self.error is not None:
            raise self.error
        # Record whether the sender thread was held off during the flush.
        self.flushes.append((list(universes), self.manual_flush))


@pytest.fixture
def fake_sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def sender(fake_sender) -> E131Transmitter:
    def factory(**kwargs) -> FakeSender:
        fake_sender.kwargs = kwargs
        return fake_sender

    transmitter = E131Transmitter(TransmitterConfig(sync_universe=7), sender_factory=factory)
    transmitter.open()
    return transmitter


def test_open_starts_sender_with_config(sender, fake_sender) -> None:
    assert fake_sender.started
    assert fake_sender.kwargs["bind_port"] == 5568
    assert fake_sender.kwargs["source_name"] == "sACN Test Generator"
    assert fake_sender.kwargs["sync_universe"] == 7


def test_register_activates_multicast_output(sender, fake_sender) -> None:
    sender.register(3)

    output = fake_sender[3]
    assert output.multicast is True
    assert output.priority == 100
    assert output.ttl == 8
    assert sender.registered_universes == (3,)


def test_register_rejects_reserved_universe(sender) -> None:
    with pytest.raises(RangeError):
        sender.register(64000)


def test_send_requires_registration(sender, fake_sender) -> None:
    with pytest.raises(UniverseNotRegisteredError):
        sender.send_multicast(1, build_static([1, 2, 3]))

    assert fake_sender.outputs == {}


def test_send_requires_open_transmitter() -> None:
    transmitter = E131Transmitter(TransmitterConfig(), sender_factory=FakeSender)
    transmitter._registered.add(1)

    with pytest.raises(TransmissionError, match="not open"):
        transmitter.send_multicast(1, build_static([1]))


def test_data_is_handed_over_without_start_code(sender, fake_sender) -> None:
    sender.register(1)
    sender.send_multicast(1, build_static([10, 20, 30]))

    assert fake_sender[1].dmx_data == (10, 20, 30)
    assert fake_sender.flushes == []


def test_non_zero_start_code_is_rejected(sender) -> None:
    sender.register(1)

    with pytest.raises(TransmissionError, match="start code"):
        sender.send_multicast(1, build_static([1], start_code=0xDD))


def test_unicast_sets_destination(sender, fake_sender) -> None:
    sender.register(2)
    sender.send_unicast("10.0.0.9", 2, build_static([5]))

    assert fake_sender[2].multicast is False
    assert fake_sender[2].destination == "10.0.0.9"

    sender.send_multicast(2, build_static([6]))
    assert fake_sender[2].multicast is True


def test_preview_flag_reaches_outputs(sender, fake_sender) -> None:
    sender.register(1)
    sender.set_preview(True)
    sender.register(2)

    assert fake_sender[1].preview_data is True
    assert fake_sender[2].preview_data is True


def test_synchronized_send_flushes_with_thread_held_off(sender, fake_sender) -> None:
    sender.register(1)
    sender.send_multicast(1, build_static([9]), sync_universe=7)

    assert fake_sender.flushes == [([1], True)]
    assert fake_sender.manual_flush is False
    assert fake_sender[1].dmx_data == (9,)


def test_send_sync_flushes_every_registered_universe(sender, fake_sender) -> None:
    sender.register(2)
    sender.register(1)
    sender.send_sync(7, destination="10.0.0.9")

    assert fake_sender.flushes == [([1, 2], True)]
    assert fake_sender.manual_flush is False


@pytest.mark.parametrize("call", ["data", "sync"])
def test_other_sync_universe_is_rejected(sender, fake_sender, call: str) -> None:
    sender.register(1)

    with pytest.raises(TransmissionError, match="sync universe 8"):
        if call == "data":
            sender.send_multicast(1, build_static([1]), sync_universe=8)
        else:
            sender.send_sync(8)

    assert fake_sender.flushes == []


def test_terminate_universe_deactivates_output(sender, fake_sender) -> None:
    sender.register(1)
    sender.register(2)

    sender.terminate(1)

    assert fake_sender.deactivated == [1]
    assert sender.registered_universes == (2,)
    assert not fake_sender.stopped
    with pytest.raises(UniverseNotRegisteredError):
        sender.send_multicast(1, build_static([1]))


def test_terminate_unregistered_universe_raises(sender) -> None:
    with pytest.raises(UniverseNotRegisteredError):
        sender.terminate(5)


def test_terminate_all_stops_the_sender(sender, fake_sender) -> None:
    sender.register(2)
    sender.register(1)

    sender.terminate()

    assert fake_sender.deactivated == [1, 2]
    assert fake_sender.stopped
    assert sender.registered_universes == ()


def test_os_errors_become_transmission_errors() -> None:
    failing = FakeSender(error=OSError("network is unreachable"))
    transmitter = E131Transmitter(
        TransmitterConfig(sync_universe=7), sender_factory=lambda **kwargs: failing
    )
    transmitter.open()
    transmitter.register(1)

    with pytest.raises(TransmissionError, match="unreachable") as excinfo:
        transmitter.send_multicast(1, build_static([1]), sync_universe=7)

    assert excinfo.value.universe == 1
    assert failing.manual_flush is False


def test_context_manager_stops_sender(fake_sender) -> None:
    with E131Transmitter(TransmitterConfig(), sender_factory=lambda **kwargs: fake_sender):
        assert fake_sender.started

    assert fake_sender.stopped
