import time, logging
import threading
import paho.mqtt.client as mqtt


def create_mqtt_client(client_id: str, clean_session: bool = True):
    try:
        return mqtt.Client(mqtt.CallbackAPIVersion.VERSION1, client_id=client_id, clean_session=clean_session)
    except AttributeError:
        # paho-mqtt < 2.0 has no CallbackAPIVersion
        return mqtt.Client(client_id=client_id, clean_session=clean_session)


class MQTTRouter:
    def __init__(self, name: str, cfg, on_message: callable = None):
        self.name = name
        self.cfg = cfg
        self.on_message = on_message
        self._client = create_mqtt_client(cfg.client_id, cfg.clean_session)
        self._client.on_message = self._on_message
        self._client.on_disconnect = self._on_disconnect
        self._client.on_connect = self._on_connect
        self._client.on_log = self._on_log
        if cfg.username:
            self._client.username_pw_set(cfg.username, cfg.password)
        self._lock = threading.Lock()
        self._run = False
        self._connected = False
        self._retry_backoff = 1.0  # seconds
        self._threads = []
        self._subscriptions = []

    def start(self):
        self._run = True
        t = threading.Thread(target=self._connect_loop, daemon=False)
        t.start()
        self._threads.append(t)

    def _connect_loop(self):
        host = self.cfg.host
        port = int(self.cfg.port)
        while self._run:
            if self._connected:
                time.sleep(1.0)
                continue
            try:
                logging.info(f"[mqtt:{self.name}] attempting connect_async {host}:{port}")
                self._client.connect_async(host, port, keepalive=self.cfg.keepalive)
                self._client.loop_start()
                # on_connect sets _connected
                wait_for = 5.0
                start = time.time()
                while self._run and not self._connected and (time.time() - start) < wait_for:
                    time.sleep(0.1)
                if self._connected:
                    logging.info(f"[mqtt:{self.name}] connected (on_connect confirmed)")
                elif self._run:
                    logging.warning(f"[mqtt:{self.name}] connect not confirmed within {wait_for}s; will retry in {self._retry_backoff:.1f}s")
                    self._client.loop_stop()
                    time.sleep(self._retry_backoff)
            except (OSError, ValueError) as e:
                logging.warning(f"[mqtt:{self.name}] connect error: {e}; retry in {self._retry_backoff:.1f}s")
                time.sleep(self._retry_backoff)

    def _on_connect(self, client, userdata, flags, rc):
        if rc != 0:
            logging.warning(f"[mqtt:{self.name}] on_connect rc={rc}")
            return
        logging.info(f"[mqtt:{self.name}] on_connect rc=0 (success)")
        self._connected = True
        # clean sessions drop subscriptions, so restore them on every connect
        with self._lock:
            topics = list(self._subscriptions)
        for topic in topics:
            self._subscribe_now(topic)

    def _on_log(self, client, userdata, level, buf):
        logging.debug(f"[mqtt:{self.name}] paho_log level={level} msg={buf}")

    def _on_disconnect(self, client, userdata, rc):
        self._connected = False
        if not self._run:
            return
        if rc != 0:
            logging.warning(f"[mqtt:{self.name}] unexpected disconnect rc={rc}; will retry")
        else:
            logging.info(f"[mqtt:{self.name}] clean disconnect")
        self._client.loop_stop()

    def stop(self):
        self._run = False
        self._client.disconnect()
        self._client.loop_stop()
        self._connected = False
        for thr in self._threads:
            thr.join(timeout=2.0)
        self._threads = []

    def subscribe(self, topic: str):
        with self._lock:
            if topic not in self._subscriptions:
                self._subscriptions.append(topic)
        if not self._connected:
            logging.debug(f"[mqtt:{self.name}] defer subscribe (not connected) topic={topic}")
            return
        self._subscribe_now(topic)

    def _subscribe_now(self, topic: str):
        rc, _mid = self._client.subscribe(topic, qos=self.cfg.subscribe_qos)
        if rc == mqtt.MQTT_ERR_SUCCESS:
            logging.info(f"[mqtt:{self.name}] subscribed topic={topic} qos={self.cfg.subscribe_qos}")
        else:
            logging.warning(f"[mqtt:{self.name}] subscribe failed topic={topic} rc={rc}")

    def publish(self, topic: str, payload: bytes, qos: int = 1, retain: bool = True) -> bool:
        if not self._connected:
            logging.warning(f"[mqtt:{self.name}] drop publish (not connected) topic={topic}")
            return False
        with self._lock:
            info = self._client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logging.warning(f"[mqtt:{self.name}] publish failed topic={topic} rc={info.rc}")
            return False
        return True

    def _on_message(self, _client, _userdata, msg):
        if self.on_message is None:
            logging.debug(f"[mqtt:{self.name}] no handler; ignoring topic={msg.topic}")
            return
        self.on_message(msg.topic, msg.payload)
