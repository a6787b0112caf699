import os


def env_overrides() -> dict:
    """Collect MQTT/logging overrides from the environment.

    Returns a partial config dict shaped like the YAML file; an unparseable
    port is ignored.
    """
    mqtt = {}
    host = os.getenv('MOTOBROKER_MQTT_HOST')
    if host:
        mqtt['host'] = host
    port = os.getenv('MOTOBROKER_MQTT_PORT')
    if port:
        try:
            mqtt['port'] = int(port)
        except ValueError:
            pass
    client_id = os.getenv('MOTOBROKER_CLIENT_ID')
    if client_id:
        mqtt['client_id'] = client_id

    out = {'mqtt': mqtt} if mqtt else {}
    log_level = os.getenv('MOTOBROKER_LOG_LEVEL')
    if log_level:
        out['log_level'] = log_level
    return out


def parse_arbitration_id(key) -> int:
    """Accept 256, "256" or "0x100" as a routing table key."""
    if isinstance(key, bool):
        raise ValueError(f"invalid arbitration id: {key!r}")
    if isinstance(key, int):
        value = key
    elif isinstance(key, str):
        try:
            value = int(key.strip(), 0)
        except ValueError:
            raise ValueError(f"invalid arbitration id: {key!r}") from None
    else:
        raise ValueError(f"invalid arbitration id: {key!r}")
    if value < 0:
        raise ValueError(f"arbitration id must be non-negative: {key!r}")
    return value
