"""Scanner event messages and a consumer that scores received payloads.

Each hardware event is its own message type; a scanner integration pushes
them onto any iterable channel and ``consume_events`` drains it.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Union

from .config import ScoringProfile
from .models import RawScan, ScanRecord
from .pipeline import CarrierLookup, process_scan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScannerConnected:
    device_id: str
    name: str | None = None


@dataclass(frozen=True)
class ScannerDisconnected:
    device_id: str


@dataclass(frozen=True)
class DataReceived:
    scan: RawScan


@dataclass(frozen=True)
class ScannerError:
    device_id: str | None
    message: str


@dataclass(frozen=True)
class DeviceDiscovered:
    device_id: str
    name: str | None = None


ScannerEvent = Union[ScannerConnected, ScannerDisconnected, DataReceived, ScannerError, DeviceDiscovered]


def consume_events(
    events: Iterable[ScannerEvent],
    profile: ScoringProfile,
    carrier_lookup: CarrierLookup | None = None,
) -> Iterator[ScanRecord]:
    """Yield a scored record for every DataReceived; log everything else."""
    for event in events:
        if isinstance(event, DataReceived):
            yield process_scan(event.scan, profile, carrier_lookup)
        elif isinstance(event, ScannerConnected):
            logger.info("Scanner connected: %s (%s)", event.device_id, event.name or "unnamed")
        elif isinstance(event, ScannerDisconnected):
            logger.info("Scanner disconnected: %s", event.device_id)
        elif isinstance(event, DeviceDiscovered):
            logger.info("Device discovered: %s (%s)", event.device_id, event.name or "unnamed")
        elif isinstance(event, ScannerError):
            logger.error("Scanner error from %s: %s", event.device_id or "unknown device", event.message)
        else:
            raise TypeError(f"Unknown scanner event: {event!r}")
