"""
Detected Objects Publisher
==========================

Formatea cada set publicado por el controller en un mensaje MQTT.

Responsabilidad:
- Conoce la estructura de DetectedObject (class, confidence, bbox, distance)
- NO conoce MQTT (eso es del DataPlane)
"""
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ...detection.models import DetectedObject


class DetectedObjectsPublisher:
    """Publisher de sets de objetos estabilizados."""

    def __init__(self):
        self._message_count = 0

    def format_message(
        self,
        objects: Sequence[DetectedObject],
        generation: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Args:
            objects: Set publicado (ya estabilizado)
            generation: generation_count del tick que lo produjo

        Returns:
            Diccionario con mensaje formateado
        """
        detections = [obj.to_message() for obj in objects]
        self._message_count += 1
        return {
            "timestamp": datetime.now().isoformat(),
            "generation": generation,
            "detection_count": len(detections),
            "detections": detections,
            "message_id": self._message_count,
        }

    @property
    def message_count(self) -> int:
        return self._message_count
