import paho.mqtt.client as mqtt

from motobroker.config.loader import MQTTConfig
from motobroker.routers import mqtt_router as mqtt_router_module
from motobroker.routers.mqtt_router import MQTTRouter


class DummyInfo:
    def __init__(self, rc):
        self.rc = rc


class DummyClient:
    def __init__(self, *args, **kwargs):
        self.publishes = []
        self.subscriptions = []
        self.credentials = None
        self.publish_rc = mqtt.MQTT_ERR_SUCCESS
        self.loop_stopped = False
        self.disconnected = False

    def username_pw_set(self, u, p=None):
        self.credentials = (u, p)

    def publish(self, topic, payload=None, qos=0, retain=False):
        self.publishes.append((topic, payload, qos, retain))
        return DummyInfo(self.publish_rc)

    def subscribe(self, topic, qos=0):
        self.subscriptions.append((topic, qos))
        return mqtt.MQTT_ERR_SUCCESS, 1

    def disconnect(self):
        self.disconnected = True

    def loop_stop(self):
        self.loop_stopped = True


class DummyMsg:
    def __init__(self, topic, payload_bytes):
        self.topic = topic
        self.payload = payload_bytes


def make_router(monkeypatch, **cfg):
    client = DummyClient()
    monkeypatch.setattr(mqtt_router_module, "create_mqtt_client", lambda *a, **k: client)
    received = []
    router = MQTTRouter("test", MQTTConfig(**cfg), on_message=lambda t, p: received.append((t, p)))
    return router, client, received


def test_credentials_applied(monkeypatch):
    _, client, _ = make_router(monkeypatch, username="user", password="pw")
    assert client.credentials == ("user", "pw")


def test_publish_dropped_when_not_connected(monkeypatch):
    router, client, _ = make_router(monkeypatch)
    assert router.publish("moto/x", b"1") is False
    assert client.publishes == []


def test_publish_passes_qos_and_retain(monkeypatch):
    router, client, _ = make_router(monkeypatch)
    router._on_connect(client, None, {}, 0)
    assert router.publish("moto/x", b"1", qos=1, retain=True) is True
    assert client.publishes == [("moto/x", b"1", 1, True)]


def test_publish_failure_reported(monkeypatch):
    router, client, _ = make_router(monkeypatch)
    router._on_connect(client, None, {}, 0)
    client.publish_rc = mqtt.MQTT_ERR_NO_CONN
    assert router.publish("moto/x", b"1") is False


def test_subscriptions_deferred_until_connect(monkeypatch):
    router, client, _ = make_router(monkeypatch)
    router.subscribe("sim/#")
    router.subscribe("can/messages")
    router.subscribe("sim/#")
    assert client.subscriptions == []
    router._on_connect(client, None, {}, 0)
    assert client.subscriptions == [("sim/#", 1), ("can/messages", 1)]
    assert router._connected


def test_resubscribe_after_reconnect(monkeypatch):
    router, client, _ = make_router(monkeypatch)
    router._on_connect(client, None, {}, 0)
    router.subscribe("sim/#")
    router._run = True
    router._on_disconnect(client, None, 7)
    assert not router._connected
    router._on_connect(client, None, {}, 0)
    assert client.subscriptions == [("sim/#", 1), ("sim/#", 1)]


def test_failed_connect_rc_keeps_disconnected(monkeypatch):
    router, client, _ = make_router(monkeypatch)
    router._on_connect(client, None, {}, 5)
    assert not router._connected


def test_on_message_delegates(monkeypatch):
    router, client, received = make_router(monkeypatch)
    router._on_message(client, None, DummyMsg("sim/lights", b"ON"))
    assert received == [("sim/lights", b"ON")]


def test_on_message_without_handler(monkeypatch):
    router, client, _ = make_router(monkeypatch)
    router.on_message = None
    router._on_message(client, None, DummyMsg("sim/lights", b"ON"))


def test_stop_disconnects(monkeypatch):
    router, client, _ = make_router(monkeypatch)
    router._on_connect(client, None, {}, 0)
    router.stop()
    assert client.disconnected and client.loop_stopped
    assert not router._connected


def test_subscribe_qos_independent_of_publish_qos(monkeypatch):
    router, client, _ = make_router(monkeypatch, qos=0)
    router.subscribe("sim/#")
    router._on_connect(client, None, {}, 0)
    assert client.subscriptions == [("sim/#", 1)]
