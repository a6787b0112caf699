"""Wire payload parsers for can/messages (PascalCase) and sim/canmessages (snake_case).

Best-effort: malformed fields fall back to defaults and are logged.
"""
import json
import logging
from typing import Any, Callable, Dict, Optional, Tuple, Union

from motobroker.core.constants import REAL_CAN_TOPIC, SIM_CAN_TOPIC
from motobroker.core.frame import AlgorithmMessage, CanFrame

Payload = Union[bytes, bytearray, str]
Parser = Callable[[Payload], AlgorithmMessage]


def _load_object(payload: Payload) -> Dict[str, Any]:
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError:
            logging.warning("[parse] payload is not valid utf-8; using defaults")
            return {}
    try:
        obj = json.loads(payload)
    except (ValueError, RecursionError) as e:
        logging.warning(f"[parse] payload is not valid JSON ({e}); using defaults")
        return {}
    if not isinstance(obj, dict):
        logging.warning(f"[parse] payload is a JSON {type(obj).__name__}, expected object; using defaults")
        return {}
    return obj


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _string_field(obj: Dict[str, Any], key: str) -> str:
    value = obj.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        logging.warning(f"[parse] {key} is not a string: {value!r}")
        return ""
    return value


def _arbitration_field(obj: Dict[str, Any], key: str) -> int:
    value = obj.get(key, 0)
    if not _is_int(value) or value < 0:
        logging.warning(f"[parse] {key} is not a non-negative integer: {value!r}")
        return 0
    return value


def _data_field(obj: Dict[str, Any], key: str) -> Tuple[int, ...]:
    value = obj.get(key)
    if value is None:
        return ()
    if not isinstance(value, list):
        logging.warning(f"[parse] {key} is not a list: {value!r}")
        return ()
    if not all(_is_int(b) and 0 <= b <= 255 for b in value):
        logging.warning(f"[parse] {key} holds values outside 0..255: {value!r}")
        return ()
    return tuple(value)


def _frame(obj: Dict[str, Any], key: str, id_key: str, data_key: str) -> CanFrame:
    can_message = obj.get(key)
    if can_message is None:
        return CanFrame()
    if not isinstance(can_message, dict):
        logging.warning(f"[parse] {key} is not an object: {can_message!r}")
        return CanFrame()
    return CanFrame(
        arbitration_id=_arbitration_field(can_message, id_key),
        data=_data_field(can_message, data_key),
    )


def parse_can_message(payload: Payload) -> AlgorithmMessage:
    """Parse a real-channel payload (PascalCase fields)."""
    obj = _load_object(payload)
    return AlgorithmMessage(
        algorithm_id=_string_field(obj, "AlgorithmID"),
        frame=_frame(obj, "CAN_Message", "ArbitrationId", "Data"),
    )


def parse_sim_can_message(payload: Payload) -> AlgorithmMessage:
    """Parse a simulator payload (snake_case fields)."""
    obj = _load_object(payload)
    return AlgorithmMessage(
        algorithm_id=_string_field(obj, "algorithm_id"),
        frame=_frame(obj, "can_message", "arbitration_id", "data"),
    )


_PARSERS: Dict[str, Parser] = {
    REAL_CAN_TOPIC: parse_can_message,
    SIM_CAN_TOPIC: parse_sim_can_message,
}


def parser_for(topic: str) -> Optional[Parser]:
    """Return the parser for a decoding topic, or None for topics that carry no CAN frame."""
    return _PARSERS.get(topic)
