"""
Connectivity Monitor

Tracks whether the device bridge is reachable and therefore whether the
dashboard serves live or simulated data.

State machine (starts in DEMO; connectivity is never assumed):

    DEMO          --probe ok-->                     LIVE
    DEMO          --begin_reconnect-->              RECONNECTING
    RECONNECTING  --probe ok / probe fail-->        LIVE / DEMO
    LIVE          --probe fail / fetch / command--> DEMO

Probe and data failures are logged and absorbed here; nothing is re-raised.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from .bridge import BridgeClient, BridgeError
from .config import TIMERS
from .schema import ConnectionMode, ConnectionState, utc_now

log = logging.getLogger(__name__)

ModeListener = Callable[[ConnectionMode, ConnectionMode], None]


class ConnectivityMonitor:
    """Owns the connection state for one dashboard session."""

    def __init__(self, client: Optional[BridgeClient] = None):
        self.client = client or BridgeClient()
        self.state = ConnectionState()
        self._listeners: List[ModeListener] = []

    @property
    def mode(self) -> ConnectionMode:
        return self.state.mode

    @property
    def is_live(self) -> bool:
        return self.state.connected

    def subscribe(self, listener: ModeListener) -> None:
        self._listeners.append(listener)

    def _set_mode(self, mode: ConnectionMode) -> None:
        old = self.state.mode
        if old is mode:
            return
        self.state.mode = mode
        log.info(f"Connection mode {old.value} -> {mode.value}")
        for listener in self._listeners:
            listener(old, mode)

    # ─────────────────────────────────────────────────────────────────────
    # TRANSITIONS
    # ─────────────────────────────────────────────────────────────────────

    def on_probe_result(self, ok: bool, error: Optional[str] = None) -> None:
        self.state.last_probe_at = utc_now()
        self.state.last_error = None if ok else error
        self._set_mode(ConnectionMode.LIVE if ok else ConnectionMode.DEMO)

    def on_fetch_error(self, error: Exception) -> None:
        log.warning(f"Data fetch failed, switching to demo data: {error}")
        self.state.last_error = str(error)
        self._set_mode(ConnectionMode.DEMO)

    def on_command_error(self, error: Exception) -> None:
        log.error(f"Bridge command failed, disabling controls: {error}")
        self.state.last_error = str(error)
        self._set_mode(ConnectionMode.DEMO)

    def begin_reconnect(self) -> None:
        if not self.is_live:
            self._set_mode(ConnectionMode.RECONNECTING)

    # ─────────────────────────────────────────────────────────────────────
    # PROBING
    # ─────────────────────────────────────────────────────────────────────

    async def probe(self, timeout: Optional[float] = None) -> bool:
        """
        Check the bridge once.

        Returns True only for a 2xx answer within the timeout. The outer
        wait_for bounds the whole call even if the transport ignores its
        own timeout.
        """
        timeout = timeout if timeout is not None else self.client.config.probe_timeout_s
        try:
            await asyncio.wait_for(self.client.ping(), timeout=timeout)
        except asyncio.TimeoutError:
            log.warning(f"Bridge probe timed out after {timeout:.0f}s")
            self.on_probe_result(False, f"probe timed out after {timeout:.0f}s")
            return False
        except BridgeError as e:
            log.warning(f"Bridge probe failed: {e}")
            self.on_probe_result(False, str(e))
            return False
        self.on_probe_result(True)
        return True

    async def reconnect(self) -> bool:
        """Manual or scheduled reconnect attempt."""
        self.begin_reconnect()
        return await self.probe()

    async def reconnect_loop(self, interval: Optional[float] = None) -> None:
        """Re-probe periodically, but only while not live. Runs until cancelled."""
        interval = interval if interval is not None else TIMERS.reconnect_interval_s
        while True:
            await asyncio.sleep(interval)
            if not self.is_live:
                log.info("Attempting to reconnect to bridge...")
                await self.reconnect()
