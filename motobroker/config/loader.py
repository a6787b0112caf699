import yaml
from pathlib import Path
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from motobroker.config.broker import env_overrides, parse_arbitration_id
from motobroker.core.constants import (
    DEFAULT_SIM_ROUTES, DEFAULT_SUBSCRIPTIONS, PUBLISH_QOS, PUBLISH_RETAIN,
)
from motobroker.core.router import RoutingTable


class MQTTConfig(BaseModel):
    host: str = "localhost"
    port: int = 1883
    client_id: str = "CppBroker"
    username: Optional[str] = None
    password: Optional[str] = None
    keepalive: int = 60
    clean_session: bool = True
    qos: int = PUBLISH_QOS
    subscribe_qos: int = 1
    retain: bool = PUBLISH_RETAIN
    subscriptions: List[str] = Field(default_factory=lambda: list(DEFAULT_SUBSCRIPTIONS))


class BrokerConfig(BaseModel):
    mqtt: MQTTConfig = Field(default_factory=MQTTConfig)
    routes: Dict[int, str] = Field(default_factory=lambda: dict(DEFAULT_SIM_ROUTES))
    log_level: str = "INFO"

    def routing_table(self) -> RoutingTable:
        return RoutingTable(self.routes)


def _merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None) -> BrokerConfig:
    """Load YAML config (optional), then apply environment overrides.

    A `routes` mapping in the file replaces the built-in table; keys may be
    decimal or 0x-prefixed hex.
    """
    data = {}
    if path is not None:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Config not found: {path}")
        with open(p, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config {path} must be a mapping, got {type(data).__name__}")

    if data.get("mqtt") is None:
        data.pop("mqtt", None)
    elif not isinstance(data["mqtt"], dict):
        raise ValueError("mqtt must be a mapping of broker settings")

    raw_routes = data.get("routes")
    if raw_routes is not None:
        if not isinstance(raw_routes, dict):
            raise ValueError("routes must be a mapping of arbitration id -> topic")
        data["routes"] = {parse_arbitration_id(k): v for k, v in raw_routes.items()}

    data = _merge(data, env_overrides())
    known = {k: v for k, v in data.items() if k in ("mqtt", "routes", "log_level")}
    return BrokerConfig(**known)
