"""
MQTT Data Plane
===============

Publica cada set de objetos detectados (QoS 0, fire-and-forget).
Sin conexión el set se descarta: el próximo tick publica uno nuevo.

MQTTDataPlane es el canal; el formato del mensaje vive en
`publishers.DetectedObjectsPublisher`.
"""
import json
import logging
from threading import Lock
from typing import Any, Dict, Optional, Sequence

import paho.mqtt.client as mqtt

from ..detection.models import DetectedObject
from ..logging import log_error_with_context, log_mqtt_publish
from ..transport import MQTTPlane
from .publishers import DetectedObjectsPublisher

logger = logging.getLogger(__name__)


class MQTTDataPlane(MQTTPlane):

    component = "data_plane"

    def __init__(
        self,
        broker_host: str,
        broker_port: int = 1883,
        data_topic: str = "thirdeye/data/objects",
        client_id: str = "thirdeye_data",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0,
    ):
        super().__init__(broker_host, broker_port, client_id, username, password, qos)
        self.data_topic = data_topic
        self.publisher = DetectedObjectsPublisher()
        self._lock = Lock()
        self._publish_errors = 0
        self._skipped = 0

    def publish_objects(
        self,
        objects: Sequence[DetectedObject],
        generation: Optional[int] = None,
    ) -> bool:
        """
        Returns:
            True si paho aceptó el mensaje (rc == MQTT_ERR_SUCCESS)
        """
        if not self.is_connected:
            self._skipped += 1
            return False

        try:
            with self._lock:
                message = self.publisher.format_message(objects, generation)
            payload = json.dumps(message, default=str)
            rc = self.client.publish(self.data_topic, payload, qos=self.qos).rc
        except Exception as e:
            self._publish_errors += 1
            log_error_with_context(
                logger,
                message="❌ Error publicando set detectado",
                exception=e,
                component=self.component,
                event="publish_exception",
                mqtt_topic=self.data_topic,
            )
            return False

        success = rc == mqtt.MQTT_ERR_SUCCESS
        if not success:
            self._publish_errors += 1
        log_mqtt_publish(
            logger,
            topic=self.data_topic,
            qos=self.qos,
            payload_size=len(payload),
            success=success,
            error_code=None if success else rc,
            num_detections=message["detection_count"],
        )
        return success

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            published = self.publisher.message_count
        return {
            "messages_published": published,
            "publish_errors": self._publish_errors,
            "skipped_disconnected": self._skipped,
            "connected": self.is_connected,
            "topic": self.data_topic,
        }
