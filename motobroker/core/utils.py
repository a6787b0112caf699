import json
from typing import Iterable


def dumps_compact(obj) -> str:
    return json.dumps(obj, separators=(",", ":"))


def format_frame(arbitration_id: int, data: Iterable[int]) -> str:
    """Diagnostic one-liner for a decoded CAN frame."""
    data_str = " ".join(str(b) for b in data)
    return f"Arbitration ID: {arbitration_id:#x} Data Bytes: {data_str}".rstrip()
