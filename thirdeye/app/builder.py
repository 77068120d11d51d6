"""
Session Builder
===============

Construye los componentes de una sesión ThirdEye a partir de ThirdEyeConfig.

Responsabilidad:
- Un único matcher compartido por stabilizer y audio (misma identidad)
- Source, pipeline, audio, controller
- MQTT planes (si mqtt.enabled) y registro de comandos

Diseño:
- Builder construye, la aplicación orquesta el lifecycle
- Los componentes se reciben ya armados (inyectables en tests)
"""
from typing import Optional, Tuple
import logging

from ..audio import AudioDispatcher, AudioService, LoggingAudioService
from ..config import ThirdEyeConfig
from ..control import MQTTControlPlane
from ..data import MQTTDataPlane, create_mqtt_sink
from ..detection.pipeline import DetectionPipeline
from ..detection.source import DetectionSource, MockDetectionSource
from ..detection.stabilization import LabelIoUMatcher
from .controller import DetectionController
from .permissions import (
    CameraPermissionProvider,
    DevicePermissionProvider,
    StaticPermissionProvider,
)

logger = logging.getLogger(__name__)


class SessionBuilder:
    """
    Usage:
        builder = SessionBuilder(config)
        service, dispatcher = builder.build_audio()
        controller = builder.build_controller(audio=dispatcher)
        control_plane, data_plane = builder.build_planes(controller, dispatcher)
    """

    def __init__(self, config: ThirdEyeConfig):
        self.config = config
        self.matcher = LabelIoUMatcher(threshold=config.stabilization.iou_threshold)

    def build_source(self) -> DetectionSource:
        detection = self.config.detection
        return MockDetectionSource(
            spawn_every=detection.spawn_every,
            max_new_objects=detection.max_new_objects,
            dropout_rate=detection.dropout_rate,
            jitter=detection.jitter,
            seed=detection.seed,
        )

    def build_pipeline(self) -> DetectionPipeline:
        return DetectionPipeline(
            confidence_threshold=self.config.quality.confidence_threshold,
            matcher=self.matcher,
            new_weight=self.config.stabilization.new_weight,
        )

    def build_audio(
        self,
        service: Optional[AudioService] = None,
    ) -> Tuple[Optional[AudioService], Optional[AudioDispatcher]]:
        """
        Returns:
            (service, dispatcher), ambos None si audio.enabled=False
        """
        if not self.config.audio.enabled:
            logger.info("🔇 Audio deshabilitado (audio.enabled=false)")
            return None, None

        service = service or LoggingAudioService()
        dispatcher = AudioDispatcher(
            service,
            settings=self.config.audio,
            confidence_threshold=self.config.quality.confidence_threshold,
            matcher=self.matcher,
        )
        return service, dispatcher

    def build_permissions(self) -> CameraPermissionProvider:
        camera = self.config.camera
        if camera.provider == 'device':
            logger.info(f"📷 Cámara: device {camera.device_path}")
            return DevicePermissionProvider(camera.device_path)
        return StaticPermissionProvider(granted=camera.granted)

    def build_controller(
        self,
        source: Optional[DetectionSource] = None,
        permissions: Optional[CameraPermissionProvider] = None,
        audio: Optional[AudioDispatcher] = None,
    ) -> DetectionController:
        return DetectionController(
            source=source or self.build_source(),
            permissions=permissions or self.build_permissions(),
            pipeline=self.build_pipeline(),
            settings=self.config.detection,
            audio=audio,
        )

    def build_planes(
        self,
        controller: DetectionController,
        audio: Optional[AudioDispatcher] = None,
    ) -> Tuple[Optional[MQTTControlPlane], Optional[MQTTDataPlane]]:
        """
        Construye (sin conectar) control y data plane.

        Returns:
            (control_plane, data_plane), ambos None si mqtt.enabled=False
        """
        mqtt_cfg = self.config.mqtt
        if not mqtt_cfg.enabled:
            return None, None

        data_plane = MQTTDataPlane(
            broker_host=mqtt_cfg.broker.host,
            broker_port=mqtt_cfg.broker.port,
            data_topic=mqtt_cfg.topics.data,
            username=mqtt_cfg.broker.username,
            password=mqtt_cfg.broker.password,
            qos=mqtt_cfg.qos.data,
        )
        controller.subscribe(create_mqtt_sink(data_plane, controller))

        control_plane = MQTTControlPlane(
            broker_host=mqtt_cfg.broker.host,
            broker_port=mqtt_cfg.broker.port,
            command_topic=mqtt_cfg.topics.control_commands,
            status_topic=mqtt_cfg.topics.control_status,
            username=mqtt_cfg.broker.username,
            password=mqtt_cfg.broker.password,
            qos=mqtt_cfg.qos.control,
        )
        register_commands(control_plane, controller, audio)

        return control_plane, data_plane


def register_commands(
    control_plane: MQTTControlPlane,
    controller: DetectionController,
    audio: Optional[AudioDispatcher] = None,
) -> None:
    """
    Registra los comandos de control. mute/unmute solo si hay audio.
    """
    registry = control_plane.command_registry

    def publish_status():
        if controller.is_running:
            status = "running"
        elif controller.has_camera_permission is False:
            status = "camera_denied"
        else:
            status = "idle"
        control_plane.publish_status(status)

    def handle_start():
        controller.start()
        publish_status()

    def handle_stop():
        controller.stop()
        publish_status()

    def handle_stats():
        control_plane.publish_status(controller.state.value, {"stats": controller.get_stats()})

    registry.register('start', handle_start, "Inicia la sesión de detección")
    registry.register('stop', handle_stop, "Detiene la sesión y limpia el estado")
    registry.register('status', publish_status, "Publica el estado actual")
    registry.register('stats', handle_stats, "Publica estadísticas del controller")

    if audio is not None:
        def handle_mute():
            audio.mute()
            control_plane.publish_status(controller.state.value, {"muted": True})

        def handle_unmute():
            audio.unmute()
            control_plane.publish_status(controller.state.value, {"muted": False})

        registry.register('mute', handle_mute, "Silencia el audio")
        registry.register('unmute', handle_unmute, "Reactiva el audio")
