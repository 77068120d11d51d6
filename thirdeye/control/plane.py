"""
MQTT Control Plane
==================

Comandos JSON `{"command": "<name>"}` entrantes (QoS 1) y estado de la
sesión saliente (retained, QoS 1).

El plane no conoce al controller: la aplicación registra los handlers en
`command_registry` (ver `app.builder.register_commands`).
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..logging import (
    generate_trace_id,
    log_error_with_context,
    log_mqtt_command,
    trace_context,
)
from ..transport import MQTTPlane
from .registry import CommandNotAvailableError, CommandRegistry

logger = logging.getLogger(__name__)


class MQTTControlPlane(MQTTPlane):
    """
    Usage:
        control_plane = MQTTControlPlane(broker_host="localhost")
        control_plane.command_registry.register('stop', controller.stop, "Detiene la sesión")
        control_plane.connect()
    """

    component = "control_plane"

    def __init__(
        self,
        broker_host: str,
        broker_port: int = 1883,
        command_topic: str = "thirdeye/control/commands",
        status_topic: str = "thirdeye/control/status",
        client_id: str = "thirdeye_control",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
    ):
        super().__init__(broker_host, broker_port, client_id, username, password, qos)
        self.command_topic = command_topic
        self.status_topic = status_topic
        self.command_registry = CommandRegistry()
        self.client.on_message = self._on_message

    def _on_ready(self) -> None:
        # Re-suscribe en cada (re)conexión
        self.client.subscribe(self.command_topic, qos=self.qos)
        logger.info(
            f"📡 Escuchando comandos en {self.command_topic}",
            extra={
                "component": self.component,
                "event": "topic_subscribed",
                "mqtt_topic": self.command_topic,
                "qos": self.qos,
            }
        )

    @staticmethod
    def _parse_command(raw: bytes) -> Dict[str, Any]:
        data = json.loads(raw.decode("utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Command payload must be a JSON object, got {type(data).__name__}")
        return data

    def _on_message(self, client, userdata, msg):
        try:
            data = self._parse_command(msg.payload)
        except (UnicodeDecodeError, ValueError) as e:
            # JSONDecodeError es subclase de ValueError
            logger.error(
                f"❌ Payload de comando inválido: {e}",
                extra={
                    "component": self.component,
                    "event": "invalid_payload",
                    "mqtt_topic": msg.topic,
                    "raw_payload": repr(msg.payload[:200]),
                }
            )
            return

        command = str(data.get("command", "")).strip().lower()
        with trace_context(generate_trace_id(prefix=f"cmd-{command or 'empty'}")) as trace_id:
            log_mqtt_command(logger, command=command, topic=msg.topic, payload=data, trace_id=trace_id)
            self._execute(command)

    def _execute(self, command: str) -> None:
        try:
            self.command_registry.execute(command)
        except CommandNotAvailableError as e:
            logger.warning(
                f"⚠️ {e}",
                extra={
                    "component": self.component,
                    "event": "command_unavailable",
                    "command": command,
                    "available_commands": sorted(self.command_registry.available_commands),
                }
            )
        except Exception as e:
            log_error_with_context(
                logger,
                message=f"❌ Error ejecutando comando '{command}'",
                exception=e,
                component=self.component,
                event="command_failed",
                command=command,
            )
        else:
            logger.debug(
                f"✅ Comando '{command}' ejecutado",
                extra={"component": self.component, "event": "command_executed", "command": command}
            )

    def publish_status(self, status: str, details: Optional[Dict[str, Any]] = None):
        """
        Publica el estado (retained: un cliente nuevo lo recibe al suscribirse).

        Args:
            status: "running", "idle", "camera_denied", "disconnected"
            details: Campos extra fusionados en el mensaje (ej: {"stats": ...})
        """
        message = {
            "status": status,
            "timestamp": datetime.now().isoformat(),
            "client_id": self.client_id,
            **(details or {}),
        }
        self.client.publish(self.status_topic, json.dumps(message, default=str), qos=self.qos, retain=True)
        logger.info(
            f"📣 Status: {status}",
            extra={
                "component": self.component,
                "event": "status_published",
                "status": status,
                "mqtt_topic": self.status_topic,
            }
        )

    def disconnect(self) -> None:
        self.publish_status("disconnected")
        super().disconnect()
