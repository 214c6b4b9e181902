"""
E1.31 (streaming ACN) transmitter built on the ``sacn`` package.

Packet encoding, sequence numbers, keep-alive and the stream-terminated
packets sent on deactivation are handled by ``sacn.sACNsender``. This
module maps the generator's send operations onto the sender's outputs
and turns socket failures into ``TransmissionError``.

Unsynchronized data goes out on the sender's own thread as soon as an
output's data changes. Synchronized data is flushed in the caller's
thread, which sends the universe followed by a sync packet on the
sender's sync universe.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Protocol, Set, Tuple

import sacn
import structlog

from sacn_testgen.core.config import TransmitterConfig
from sacn_testgen.core.exceptions import (
    RangeError,
    TransmissionError,
    UniverseNotRegisteredError,
)
from sacn_testgen.dmx.universe import DMX_START_CODE, UNIVERSE_MAX, is_valid_universe

logger = structlog.get_logger()

SenderFactory = Callable[..., Any]


class Transmitter(Protocol):
    """What the dispatcher and presets need from the transport."""

    def send_multicast(
        self, universe: int, buffer: bytes, sync_universe: Optional[int] = None
    ) -> None: ...

    def send_unicast(
        self,
        destination: str,
        universe: int,
        buffer: bytes,
        sync_universe: Optional[int] = None,
    ) -> None: ...

    def register(self, universe: int) -> None: ...

    def set_preview(self, enabled: bool) -> None: ...

    def terminate(self, universe: Optional[int] = None) -> None: ...

    def send_sync(self, sync_universe: int, destination: Optional[str] = None) -> None: ...

    def close(self) -> None: ...


@contextmanager
def _send_errors(universe: Optional[int]) -> Iterator[None]:
    try:
        yield
    except OSError as e:
        logger.error("E1.31 send failed", universe=universe, error=str(e))
        raise TransmissionError(str(e), universe=universe) from e


class E131Transmitter:
    """Sends universe data, termination and sync through an ``sACNsender``."""

    def __init__(
        self,
        config: TransmitterConfig,
        sender_factory: SenderFactory = sacn.sACNsender,
    ):
        self.config = config
        self.preview = False
        self._sender_factory = sender_factory
        self._sender: Any = None
        self._registered: Set[int] = set()

    def open(self) -> None:
        if self._sender is not None:
            return
        with _send_errors(None):
            sender = self._sender_factory(
                bind_address=self.config.bind_ip,
                bind_port=self.config.port,
                source_name=self.config.source_name,
                fps=self.config.fps,
                universeDiscovery=self.config.universe_discovery,
                sync_universe=self.config.sync_universe,
            )
            sender.start()
        self._sender = sender
        logger.info(
            "E1.31 transmitter opened",
            bind_ip=self.config.bind_ip,
            sync_universe=self.config.sync_universe,
        )

    def close(self) -> None:
        if self._sender is None:
            return
        sender, self._sender = self._sender, None
        self._registered.clear()
        with _send_errors(None):
            sender.stop()
        logger.info("E1.31 transmitter closed")

    def __enter__(self) -> "E131Transmitter":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def registered_universes(self) -> Tuple[int, ...]:
        return tuple(sorted(self._registered))

    def register(self, universe: int) -> None:
        if not is_valid_universe(universe):
            raise RangeError("universe", universe, f"must be 1-{UNIVERSE_MAX}")
        if universe in self._registered:
            return
        sender = self._require_open(universe)
        with _send_errors(universe):
            sender.activate_output(universe)
            output = sender[universe]
            output.multicast = True
            output.ttl = self.config.multicast_ttl
            output.priority = self.config.priority
            output.preview_data = self.preview
        self._registered.add(universe)
        logger.info("Universe registered", universe=universe)

    def set_preview(self, enabled: bool) -> None:
        self.preview = enabled
        if self._sender is not None:
            for universe in self._registered:
                self._sender[universe].preview_data = enabled
        logger.info("Preview data flag set", preview=enabled)

    def send_multicast(
        self, universe: int, buffer: bytes, sync_universe: Optional[int] = None
    ) -> None:
        self._send_data(universe, buffer, None, sync_universe)

    def send_unicast(
        self,
        destination: str,
        universe: int,
        buffer: bytes,
        sync_universe: Optional[int] = None,
    ) -> None:
        self._send_data(universe, buffer, destination, sync_universe)

    def send_sync(self, sync_universe: int, destination: Optional[str] = None) -> None:
        """
        Flush every registered universe followed by a sync packet.

        The sender emits sync packets on the sync universe's multicast
        group only; ``destination`` is logged and otherwise unused.
        """
        self._check_sync_universe(sync_universe)
        sender = self._require_open(None)
        if destination is not None:
            logger.debug("Sync packet sent by multicast", destination=destination)
        with _send_errors(None):
            sender.manual_flush = True
            try:
                sender.flush(list(self.registered_universes))
            finally:
                sender.manual_flush = False

    def terminate(self, universe: Optional[int] = None) -> None:
        """
        Stream-terminate one universe, or every registered universe
        followed by stopping the sender.
        """
        if universe is None:
            for registered in self.registered_universes:
                self._terminate_universe(registered)
            self.close()
            return
        self._terminate_universe(universe)

    def _terminate_universe(self, universe: int) -> None:
        if universe not in self._registered:
            raise UniverseNotRegisteredError(universe)
        sender = self._require_open(universe)
        with _send_errors(universe):
            sender.deactivate_output(universe)
        self._registered.discard(universe)
        logger.info("Universe terminated", universe=universe)

    def _send_data(
        self,
        universe: int,
        buffer: bytes,
        destination: Optional[str],
        sync_universe: Optional[int],
    ) -> None:
        if universe not in self._registered:
            raise UniverseNotRegisteredError(universe)
        if buffer and buffer[0] != DMX_START_CODE:
            raise TransmissionError(f"unsupported start code {buffer[0]:#04x}", universe=universe)
        if sync_universe is not None:
            self._check_sync_universe(sync_universe)
        sender = self._require_open(universe)

        with _send_errors(universe):
            if sync_universe is None:
                self._update_output(sender[universe], buffer, destination)
                return
            # Held back from the sender thread so it only goes out with the sync packet.
            sender.manual_flush = True
            try:
                self._update_output(sender[universe], buffer, destination)
                sender.flush([universe])
            finally:
                sender.manual_flush = False

    def _update_output(self, output: Any, buffer: bytes, destination: Optional[str]) -> None:
        if destination is None:
            output.multicast = True
        else:
            output.multicast = False
            output.destination = destination
        output.preview_data = self.preview
        output.dmx_data = tuple(buffer[1:])

    def _check_sync_universe(self, sync_universe: int) -> None:
        if sync_universe != self.config.sync_universe:
            raise TransmissionError(
                f"sync universe {sync_universe} requested, sender synchronizes on "
                f"universe {self.config.sync_universe}"
            )

    def _require_open(self, universe: Optional[int]) -> Any:
        if self._sender is None:
            raise TransmissionError("transmitter is not open", universe=universe)
        return self._sender
