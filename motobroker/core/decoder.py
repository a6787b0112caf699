"""data[0] status, data[1..2] distance (cm, little-endian), data[3] blind spot side."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from motobroker.core.constants import BLIND_SPOT_DETECTION
from motobroker.core.frame import CanFrame


class Side(str, Enum):
    # wire values expected by downstream dashboards
    LEFT = "Esquerda"
    RIGHT = "Direita"


@dataclass(frozen=True)
class DecodedSignal:
    status: bool
    distance_meters: float
    side: Optional[Side] = None


def decode_status(frame: CanFrame) -> bool:
    data = frame.data
    return len(data) > 0 and data[0] == 1


def decode_distance(frame: CanFrame) -> float:
    data = frame.data
    raw = 0
    if len(data) > 2:
        raw = data[1] | (data[2] << 8)
    return raw / 100.0


def decode_side(frame: CanFrame) -> Side:
    data = frame.data
    if len(data) > 3 and data[3] == 1:
        return Side.RIGHT
    return Side.LEFT


def decode(algorithm_id: str, frame: CanFrame) -> DecodedSignal:
    side = decode_side(frame) if algorithm_id == BLIND_SPOT_DETECTION else None
    return DecodedSignal(
        status=decode_status(frame),
        distance_meters=decode_distance(frame),
        side=side,
    )
