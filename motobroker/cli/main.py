import argparse
import logging
import sys
import time

from pydantic import ValidationError

from motobroker.config.loader import load_config
from motobroker.core.bridge import Bridge
from motobroker.core.router import Drop, Forward, Relay
from motobroker.routers.mqtt_router import MQTTRouter


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser("motobroker", description="Translate CAN sensor frames between MQTT topics")
    p.add_argument("--config", "-c", help="Path to YAML config")
    p.add_argument("--host", help="MQTT broker host (overrides config)")
    p.add_argument("--port", type=int, help="MQTT broker port (overrides config)")
    p.add_argument("--client-id", help="MQTT client id (overrides config)")
    p.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    p.add_argument("--dry-run", nargs=2, metavar=("TOPIC", "PAYLOAD"),
                   help="Route one message without a broker and print the result")
    return p


def _print_decision(decision):
    if isinstance(decision, Forward):
        print(f"forward {decision.topic} {decision.envelope.to_json()}")
    elif isinstance(decision, Relay):
        print(f"relay {decision.topic} {decision.payload.decode('utf-8', errors='replace')}")
    elif isinstance(decision, Drop):
        print(f"drop {decision.reason.value} {decision.detail}".rstrip())


class _NullPublisher:
    """Stands in for the transport during --dry-run."""

    def publish(self, topic, payload, qos=1, retain=True):
        return True


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config)
    except (OSError, ValueError, ValidationError) as e:
        logging.basicConfig(level=logging.INFO)
        logging.error(f"invalid configuration: {e}")
        return 2

    if args.host:
        cfg.mqtt.host = args.host
    if args.port:
        cfg.mqtt.port = args.port
    if args.client_id:
        cfg.mqtt.client_id = args.client_id
    level = (args.log_level or cfg.log_level or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    table = cfg.routing_table()

    if args.dry_run:
        topic, payload = args.dry_run
        bridge = Bridge(_NullPublisher(), table, qos=cfg.mqtt.qos, retain=cfg.mqtt.retain)
        _print_decision(bridge.dispatch(topic, payload.encode("utf-8")))
        return 0

    mqtt_router = MQTTRouter("mqtt", cfg.mqtt)
    bridge = Bridge(mqtt_router, table, qos=cfg.mqtt.qos, retain=cfg.mqtt.retain)
    mqtt_router.on_message = bridge.on_message

    bridge.start(cfg.mqtt.subscriptions)
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logging.info("interrupted; shutting down")
    finally:
        bridge.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
