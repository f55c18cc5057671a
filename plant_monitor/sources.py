"""Telemetry sources: the live bridge or the simulator, picked by connection mode."""
import logging
from typing import Optional, Protocol

from .bridge import BridgeClient, BridgeError
from .connectivity import ConnectivityMonitor
from .schema import TelemetryReading
from .simulator import TelemetrySimulator

log = logging.getLogger(__name__)


class TelemetrySource(Protocol):
    async def read(self) -> TelemetryReading:
        ...


class BridgeTelemetrySource:
    """Reads the bridge's /capture endpoint; values are used verbatim."""

    def __init__(self, client: BridgeClient):
        self.client = client

    async def read(self) -> TelemetryReading:
        data = await self.client.capture()
        return TelemetryReading.from_bridge(data)


class SimulatedTelemetrySource:
    def __init__(self, simulator: Optional[TelemetrySimulator] = None):
        self.simulator = simulator or TelemetrySimulator()

    async def read(self) -> TelemetryReading:
        return self.simulator.generate()


class TelemetryFeed:
    """
    The only telemetry entry point callers use.

    Mode is re-checked before every remote read. A failed bridge read drops
    the monitor to demo and serves simulated data for that cycle.
    """

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        live: Optional[TelemetrySource] = None,
        simulated: Optional[SimulatedTelemetrySource] = None,
    ):
        self.monitor = monitor
        self.live = live or BridgeTelemetrySource(monitor.client)
        self.simulated = simulated or SimulatedTelemetrySource()

    def current_source(self) -> TelemetrySource:
        return self.live if self.monitor.is_live else self.simulated

    async def read(self) -> TelemetryReading:
        source = self.current_source()
        if source is self.simulated:
            return await self.simulated.read()
        try:
            return await source.read()
        except (BridgeError, KeyError, TypeError) as e:
            self.monitor.on_fetch_error(e)
            return await self.simulated.read()
