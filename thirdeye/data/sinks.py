"""
MQTT Sink Factory
=================

Listener del controller que publica cada set vía Data Plane.
"""
from typing import Callable, Sequence

from ..detection.models import DetectedObject
from .plane import MQTTDataPlane


def create_mqtt_sink(data_plane: MQTTDataPlane, controller) -> Callable:
    """
    Crea un listener compatible con DetectionController.subscribe().

    Args:
        data_plane: Instancia de MQTTDataPlane
        controller: Controller del que se toma generation_count

    Returns:
        Función (objects) -> None
    """
    def mqtt_sink(objects: Sequence[DetectedObject]):
        """Sink que publica el set vía MQTT"""
        data_plane.publish_objects(objects, generation=controller.generation_count)

    mqtt_sink.__name__ = 'mqtt_sink'

    return mqtt_sink
