import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union

from motobroker.core.constants import (
    DEFAULT_SIM_ROUTES, RELAY_PREFIX, REAL_CAN_TOPIC, SENSOR_DETECTOR_TOPIC,
    SIM_CAN_TOPIC, SIM_PREFIX,
)
from motobroker.core.decoder import decode
from motobroker.core.envelope import OutputEnvelope, compose
from motobroker.core.parsing import Payload, parser_for
from motobroker.core.utils import format_frame


class RoutingTable:
    """Read-only arbitration id -> topic mapping, built once at startup."""

    def __init__(self, routes: Optional[Mapping[int, str]] = None):
        if routes is None:
            routes = DEFAULT_SIM_ROUTES
        self._routes = MappingProxyType({int(k): str(v) for k, v in routes.items()})

    def topic_for(self, arbitration_id: int) -> Optional[str]:
        return self._routes.get(arbitration_id)

    def __contains__(self, arbitration_id) -> bool:
        return arbitration_id in self._routes

    def __repr__(self) -> str:
        inner = ", ".join(f"{k:#x}: {v!r}" for k, v in self._routes.items())
        return f"RoutingTable({{{inner}}})"


class DropReason(str, Enum):
    UNMAPPED_ARBITRATION_ID = "unmapped_arbitration_id"
    UNRECOGNIZED_TOPIC = "unrecognized_topic"
    HANDLER_ERROR = "handler_error"


@dataclass(frozen=True)
class Forward:
    topic: str
    envelope: OutputEnvelope

    @property
    def payload(self) -> bytes:
        return self.envelope.to_json().encode("utf-8")


@dataclass(frozen=True)
class Relay:
    topic: str
    payload: bytes


@dataclass(frozen=True)
class Drop:
    reason: DropReason
    detail: str = ""


RouteDecision = Union[Forward, Relay, Drop]


def relay_topic(topic: str) -> str:
    """sim/<rest> -> moto/<rest>"""
    return RELAY_PREFIX + topic[len(SIM_PREFIX):]


def _raw_bytes(payload: Payload) -> bytes:
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return bytes(payload)


def _translate(topic: str, payload: Payload, now: Optional[datetime]):
    message = parser_for(topic)(payload)
    frame = message.frame
    logging.info(f"[router] {topic} {format_frame(frame.arbitration_id, frame.data)}")
    signal = decode(message.algorithm_id, frame)
    return message, compose(message.algorithm_id, signal, now)


def route(topic: str, payload: Payload, table: RoutingTable, now: Optional[datetime] = None) -> RouteDecision:
    if topic.startswith(SIM_PREFIX):
        if topic == SIM_CAN_TOPIC:
            message, envelope = _translate(topic, payload, now)
            arbitration_id = message.frame.arbitration_id
            target = table.topic_for(arbitration_id)
            if target is None:
                return Drop(DropReason.UNMAPPED_ARBITRATION_ID, f"arbitration id {arbitration_id:#x}")
            return Forward(target, envelope)
        return Relay(relay_topic(topic), _raw_bytes(payload))

    if topic == REAL_CAN_TOPIC:
        # arbitration id is logged only; this channel has a single destination
        _, envelope = _translate(topic, payload, now)
        return Forward(SENSOR_DETECTOR_TOPIC, envelope)

    return Drop(DropReason.UNRECOGNIZED_TOPIC, f"topic {topic}")
