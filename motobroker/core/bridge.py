import logging
from datetime import datetime
from typing import Callable, Optional

from motobroker.core.constants import DEFAULT_SUBSCRIPTIONS, PUBLISH_QOS, PUBLISH_RETAIN
from motobroker.core.parsing import Payload
from motobroker.core.router import (
    Drop, DropReason, Forward, Relay, RouteDecision, RoutingTable, route,
)


class Bridge:
    """Per-message dispatch between the MQTT transport and the routing core.

    The transport calls `on_message` once per inbound message, in arrival
    order. Each message is handled to completion before returning; a failure
    in one message is logged and never reaches the transport.
    """

    def __init__(self, mqtt_router, table: Optional[RoutingTable] = None,
                 qos: int = PUBLISH_QOS, retain: bool = PUBLISH_RETAIN,
                 clock: Optional[Callable[[], datetime]] = None):
        self.mqtt = mqtt_router
        self.table = table if table is not None else RoutingTable()
        self.qos = qos
        self.retain = retain
        self.clock = clock

    # --- lifecycle ---
    def start(self, subscriptions=None):
        logging.info(f"[bridge] starting with {self.table!r}")
        for topic in subscriptions or DEFAULT_SUBSCRIPTIONS:
            self.mqtt.subscribe(topic)
        self.mqtt.start()

    def stop(self):
        self.mqtt.stop()

    # --- called by the transport ---
    def on_message(self, topic: str, payload: Payload):
        self.dispatch(topic, payload)

    def dispatch(self, topic: str, payload: Payload) -> RouteDecision:
        logging.debug(f"[bridge] received topic={topic} payload={payload!r}")
        try:
            now = self.clock() if self.clock else None
            decision = route(topic, payload, self.table, now)
            self._realize(topic, decision)
        except Exception as e:
            logging.exception(f"[bridge] error handling message on {topic}: {e}")
            decision = Drop(DropReason.HANDLER_ERROR, str(e))
        return decision

    def _realize(self, topic: str, decision: RouteDecision):
        if isinstance(decision, Forward):
            if self._publish(decision.topic, decision.payload):
                logging.info(f"[bridge] {topic} -> {decision.topic}")
        elif isinstance(decision, Relay):
            if self._publish(decision.topic, decision.payload):
                logging.info(f"[bridge] relay {topic} -> {decision.topic} payload={decision.payload!r}")
        elif isinstance(decision, Drop):
            logging.warning(f"[bridge] drop {topic}: {decision.reason.value} {decision.detail}".rstrip())
        else:
            raise TypeError(f"unknown route decision {decision!r}")

    def _publish(self, topic: str, payload: bytes) -> bool:
        sent = self.mqtt.publish(topic, payload, qos=self.qos, retain=self.retain)
        if not sent:
            logging.warning(f"[bridge] publish to {topic} not sent")
        return bool(sent)
