"""
MQTT Transport
==============

Base común de Control Plane y Data Plane: cliente paho (API de callbacks
v2, MQTT v5), credenciales, conexión con espera acotada y logs de
conexión/desconexión.

Cada plane agrega solo su semántica:
- Control Plane: suscripción a comandos al conectar (`_on_ready`)
- Data Plane: publicación de sets detectados
"""
import logging
from threading import Event
from typing import Optional

import paho.mqtt.client as mqtt

from .logging import log_error_with_context

logger = logging.getLogger(__name__)


class MQTTPlane:
    """
    Conexión MQTT de un plane.

    Subclases definen `component` (para logs) y opcionalmente `_on_ready()`,
    que corre en el thread de paho cada vez que el broker acepta la conexión.
    """

    component = "mqtt"

    def __init__(
        self,
        broker_host: str,
        broker_port: int = 1883,
        client_id: str = "thirdeye",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.client_id = client_id
        self.qos = qos

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        if username and password:
            self.client.username_pw_set(username, password)
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        self._connected = Event()

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    def _broker_fields(self):
        return {
            "component": self.component,
            "broker_host": self.broker_host,
            "broker_port": self.broker_port,
        }

    def _on_ready(self) -> None:
        pass

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            log_error_with_context(
                logger,
                message=f"❌ {self.component} rechazado por el broker ({reason_code})",
                component=self.component,
                event="connection_failed",
                broker_host=self.broker_host,
                broker_port=self.broker_port,
            )
            return

        self._on_ready()
        self._connected.set()
        logger.info(
            f"✅ {self.component} conectado",
            extra={**self._broker_fields(), "event": "connected"}
        )

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        self._connected.clear()
        logger.warning(
            f"⚠️ {self.component} desconectado",
            extra={
                "component": self.component,
                "event": "disconnected",
                "reason_code": str(reason_code),
            }
        )

    def connect(self, timeout: float = 5.0) -> bool:
        """
        Conecta y arranca el loop de red de paho.

        Returns:
            True si el broker aceptó la conexión dentro de `timeout`
        """
        logger.info(
            f"🔌 Conectando {self.component}",
            extra={**self._broker_fields(), "event": "connecting", "timeout": timeout}
        )
        try:
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
        except Exception as e:
            log_error_with_context(
                logger,
                message=f"❌ Error conectando {self.component}",
                exception=e,
                component=self.component,
                event="connection_error",
                broker_host=self.broker_host,
                broker_port=self.broker_port,
            )
            return False

        self.client.loop_start()
        return self._connected.wait(timeout=timeout)

    def disconnect(self) -> None:
        logger.info(
            f"🔌 Desconectando {self.component}",
            extra={"component": self.component, "event": "disconnecting"}
        )
        self.client.loop_stop()
        self.client.disconnect()
