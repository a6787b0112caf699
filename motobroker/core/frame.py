from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class CanFrame:
    arbitration_id: int = 0
    data: Tuple[int, ...] = field(default_factory=tuple)   # bytes 0..255


@dataclass(frozen=True)
class AlgorithmMessage:
    algorithm_id: str = ""     # may be empty; normalized by the composer
    frame: CanFrame = field(default_factory=CanFrame)
