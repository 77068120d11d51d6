"""
ThirdEye - Detection Stabilization & Audio Prioritization
==========================================================

Convierte un flujo ruidoso de detecciones en un set estable y priorizado
de objetos, y lo traduce a feedback de audio espacial.

Public API:
- ThirdEyeConfig: Configuración del sistema
- DetectionController: Sesión de detección (start/tick/stop)
- DetectionPipeline: Quality → bounds → dedup → stabilize
- AudioDispatcher: Cues de audio priorizados
- MQTTControlPlane / MQTTDataPlane: Planes MQTT opcionales

Usage:
    # Run
    python -m thirdeye --config config/thirdeye/config.yaml

    # Or programmatically
    from thirdeye import ThirdEyeConfig, ThirdEyeApplication

    app = ThirdEyeApplication(ThirdEyeConfig())
    app.run()
"""

__version__ = "1.0.0"

from .config import ThirdEyeConfig
from .detection import DetectedObject, DetectionPipeline, MockDetectionSource
from .audio import AudioDispatcher, LoggingAudioService
from .app import DetectionController, ThirdEyeApplication, main
from .control import MQTTControlPlane
from .data import MQTTDataPlane, create_mqtt_sink

__all__ = [
    "ThirdEyeConfig",
    "DetectedObject",
    "DetectionPipeline",
    "MockDetectionSource",
    "AudioDispatcher",
    "LoggingAudioService",
    "DetectionController",
    "ThirdEyeApplication",
    "main",
    "MQTTControlPlane",
    "MQTTDataPlane",
    "create_mqtt_sink",
]
