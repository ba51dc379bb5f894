"""
Connectivity & availability monitor.

Two independent signals:
  - is_online: the platform's own network-presence flag
  - db_status: how the remote store answered the last read

  disconnected ──(read ok)──────────────────────> connected
       ^  ^     ──(read unavailable, online)───> permission_denied
       |  |                                         |
       |  └────────────(read ok)────────────────────┘
       └──── platform offline (from any state, pre-empts in-flight reads)

If the device says it is online yet the remote store keeps failing, the
failure is classified as an authorization/configuration problem rather than
a transient blip. Writes never change db_status; only reads do.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from cafe.gateway.remote import RemoteResult
from cafe.metrics import DB_STATUS, NETWORK_ONLINE

logger = logging.getLogger(__name__)


class DbStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    PERMISSION_DENIED = "permission-denied"


_STATUS_GAUGE_VALUES = {
    DbStatus.DISCONNECTED: 0,
    DbStatus.CONNECTED: 1,
    DbStatus.PERMISSION_DENIED: 2,
}


@dataclass(frozen=True)
class ConnectivityState:
    is_online: bool
    db_status: DbStatus

    @property
    def is_live(self) -> bool:
        """Writes and polling go to the remote store only in this state."""
        return self.is_online and self.db_status == DbStatus.CONNECTED


Listener = Callable[[ConnectivityState, ConnectivityState], None]


class ConnectivityMonitor:
    def __init__(self, is_online: bool = False) -> None:
        self._is_online = is_online
        self._db_status = DbStatus.DISCONNECTED
        # Bumped on every offline transition; reads started under an older epoch are stale.
        self._epoch = 0
        self._listeners: list[Listener] = []
        NETWORK_ONLINE.set(1 if is_online else 0)
        DB_STATUS.set(_STATUS_GAUGE_VALUES[self._db_status])

    @property
    def is_online(self) -> bool:
        return self._is_online

    @property
    def db_status(self) -> DbStatus:
        return self._db_status

    @property
    def is_live(self) -> bool:
        return self.state().is_live

    @property
    def epoch(self) -> int:
        return self._epoch

    def state(self) -> ConnectivityState:
        return ConnectivityState(is_online=self._is_online, db_status=self._db_status)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_online(self, online: bool) -> None:
        """Platform online/offline event."""
        if online and self._is_online:
            return
        previous = self.state()
        self._is_online = online
        NETWORK_ONLINE.set(1 if online else 0)
        if not online:
            self._epoch += 1
            self._db_status = DbStatus.DISCONNECTED
        logger.info("Network presence changed", extra={"online": online})
        self._emit(previous)

    def is_current(self, epoch: int) -> bool:
        return self._is_online and epoch == self._epoch

    def record_read(self, result: RemoteResult, epoch: int) -> bool:
        """Classify a read outcome. Returns False when the result is stale and was ignored."""
        if not self.is_current(epoch):
            logger.debug("Ignoring stale read result", extra={"epoch": epoch, "current": self._epoch})
            return False
        if result.available:
            self.mark_connected()
        else:
            self.mark_permission_denied()
        return True

    def mark_connected(self) -> None:
        if self._is_online:
            self._set_status(DbStatus.CONNECTED)

    def mark_permission_denied(self) -> None:
        if self._is_online:
            self._set_status(DbStatus.PERMISSION_DENIED)

    def _set_status(self, status: DbStatus) -> None:
        if status == self._db_status:
            return
        previous = self.state()
        self._db_status = status
        if status == DbStatus.PERMISSION_DENIED:
            logger.warning(
                "Remote store unreachable while device is online, treating as permission denied"
            )
        else:
            logger.info("Remote store status changed", extra={"db_status": status.value})
        self._emit(previous)

    def _emit(self, previous: ConnectivityState) -> None:
        DB_STATUS.set(_STATUS_GAUGE_VALUES[self._db_status])
        current = self.state()
        if current == previous:
            return
        for listener in list(self._listeners):
            listener(previous, current)


async def probe_network_presence(host: str, port: int, timeout: float = 2.0) -> bool:
    """TCP reachability check, for hosts that have no platform online/offline event."""
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


async def watch_network_presence(
    monitor: ConnectivityMonitor, host: str, port: int, interval: float
) -> None:
    """Feed the monitor from periodic probes. Runs until cancelled."""
    while True:
        online = await probe_network_presence(host, port)
        if online != monitor.is_online:
            monitor.set_online(online)
        await asyncio.sleep(interval)
