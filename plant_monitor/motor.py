"""Motor Control Gateway - irrigation pump commands, gated by connection mode."""
import logging
from typing import Optional

from .bridge import BridgeError
from .connectivity import ConnectivityMonitor
from .schema import CommandResult, MotorStatus
from .simulator import TelemetrySimulator

log = logging.getLogger(__name__)


class MotorGateway:
    """
    Status/command client for the bridge's pump.

    No remote call is made while the monitor is not live, and a command
    matching the cached motor state is not sent. A failed live call is treated
    as lost connectivity and drops the monitor to demo; the user then has to
    reconnect explicitly.
    """

    def __init__(self, monitor: ConnectivityMonitor, simulator: Optional[TelemetrySimulator] = None):
        self.monitor = monitor
        self.simulator = simulator or TelemetrySimulator()
        self.status: Optional[MotorStatus] = None

    @property
    def controls_enabled(self) -> bool:
        return self.monitor.is_live

    async def get_status(self) -> CommandResult:
        if not self.monitor.is_live:
            if self.status is None:
                self.status = self.simulator.motor_status()
            return CommandResult.demo_noop(self.status)
        try:
            payload = await self.monitor.client.motor_status()
        except BridgeError as e:
            self.monitor.on_command_error(e)
            return CommandResult(ok=False, message="Failed to fetch motor status", status=self.status)
        self.status = MotorStatus.from_bridge(payload)
        return CommandResult(ok=True, message=self.status.motor_status, status=self.status)

    async def set_power(self, on: bool) -> CommandResult:
        action = "on" if on else "off"
        if not self.monitor.is_live:
            return CommandResult.demo_noop(self.status)
        if self.status is not None and self.status.motor_on == on:
            return CommandResult(ok=False, message=f"Motor is already {action}", status=self.status)
        try:
            payload = await self.monitor.client.motor(action)
            result = CommandResult(ok=True, message=str(payload.get("message", f"Motor turned {action}")))
        except BridgeError as e:
            self.monitor.on_command_error(e)
            result = CommandResult(ok=False, message=f"Failed to turn motor {action}")
        # Re-read the actuator either way; gated, so a demo no-op after a failure
        refreshed = await self.get_status()
        result.status = refreshed.status
        return result
