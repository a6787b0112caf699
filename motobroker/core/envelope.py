"""Envelope composer: decoded signal -> canonical JSON envelope."""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from motobroker.core.constants import BLIND_SPOT_DETECTION, UNKNOWN_ALGORITHM
from motobroker.core.decoder import DecodedSignal, Side
from motobroker.core.utils import dumps_compact


@dataclass(frozen=True)
class OutputEnvelope:
    algorithm_id: str
    timestamp: str
    status: bool
    data: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "AlgorithmID": self.algorithm_id,
            "Timestamp": self.timestamp,
            "Status": self.status,
            "Data": dict(self.data),
        }

    def to_json(self) -> str:
        return dumps_compact(self.to_dict())


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with millisecond precision and a `Z` suffix.

    Naive datetimes are taken to already be UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_algorithm_id(algorithm_id: Optional[str]) -> str:
    return algorithm_id or UNKNOWN_ALGORITHM


def compose(algorithm_id: Optional[str], signal: DecodedSignal, now: Optional[datetime] = None) -> OutputEnvelope:
    algorithm_id = normalize_algorithm_id(algorithm_id)
    if algorithm_id == BLIND_SPOT_DETECTION:
        side = signal.side or Side.LEFT
        data = {"Side": side.value, "DistanceToVehicle": signal.distance_meters}
    else:
        # side is never emitted outside blind spot detection
        data = {"DistanceToVehicle": signal.distance_meters}
    return OutputEnvelope(
        algorithm_id=algorithm_id,
        timestamp=utc_timestamp(now),
        status=signal.status,
        data=data,
    )
