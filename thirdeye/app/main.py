"""
ThirdEye Application
====================

Orquesta el lifecycle completo del proceso:
- Setup (delega construcción a SessionBuilder)
- Audio service initialize / dispose
- MQTT Control/Data Plane (opcionales)
- Signal handling (Ctrl+C) y cleanup
"""
import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event
from typing import Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from ..config import ThirdEyeConfig
from ..logging import setup_logging
from .builder import SessionBuilder

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/thirdeye/config.yaml"


class ThirdEyeApplication:
    """
    Responsabilidad: orquestación y lifecycle management.

    La construcción la hace SessionBuilder; la sesión de detección la
    maneja DetectionController.
    """

    def __init__(self, config: ThirdEyeConfig, builder: Optional[SessionBuilder] = None):
        self.config = config
        self.builder = builder or SessionBuilder(config)

        self.audio_service = None
        self.audio = None
        self.controller = None
        self.control_plane = None
        self.data_plane = None

        self.shutdown_event = Event()

    def setup(self) -> bool:
        """
        Construye componentes, conecta planes y arranca la detección.

        Returns:
            True si setup exitoso
        """
        logger.info("🚀 Inicializando ThirdEye...")

        self.audio_service, self.audio = self.builder.build_audio()
        if self.audio_service is not None and not self.audio_service.initialize():
            logger.error("❌ No se pudo inicializar el audio service")
            return False

        self.controller = self.builder.build_controller(audio=self.audio)
        self.control_plane, self.data_plane = self.builder.build_planes(self.controller, self.audio)

        if self.data_plane is not None:
            logger.info("📡 Configurando Data Plane...")
            if not self.data_plane.connect(timeout=10):
                logger.error("❌ No se pudo conectar Data Plane")
                return False

        if self.control_plane is not None:
            logger.info("🎮 Configurando Control Plane...")
            if not self.control_plane.connect(timeout=10):
                logger.error("❌ No se pudo conectar Control Plane")
                return False

        if not self.controller.request_camera_permission():
            logger.error(f"❌ {self.controller.error}")
            return False

        self.controller.start()
        if self.control_plane is not None:
            self.control_plane.publish_status(self.controller.state.value)

        logger.info("✅ Setup completado")
        return True

    def run(self) -> int:
        """
        Ejecuta hasta recibir SIGINT/SIGTERM.

        Returns:
            Exit code
        """
        if not self.setup():
            logger.error("❌ Setup falló")
            self.cleanup()
            return 1

        logger.info("=" * 70)
        logger.info("🎬 ThirdEye activo y corriendo")
        logger.info("=" * 70)
        if self.control_plane is not None:
            logger.info(f"📡 Control Topic: {self.control_plane.command_topic}")
            logger.info(f"📊 Data Topic: {self.data_plane.data_topic}")
            logger.info("💡 Comandos MQTT disponibles:")
            for cmd, desc in sorted(self.control_plane.command_registry.get_help().items()):
                logger.info(f'   {cmd.upper()}: {{"command": "{cmd}"}} - {desc}')
        logger.info("⌨️  Presiona Ctrl+C para salir")

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        try:
            while not self.shutdown_event.is_set():
                self.shutdown_event.wait(timeout=1.0)
        except KeyboardInterrupt:
            logger.info("⚠️ Interrupción forzada...")
            self.shutdown_event.set()

        self.cleanup()
        return 0

    def _signal_handler(self, signum, frame):
        logger.info("⚠️ Señal de terminación recibida...")
        self.shutdown_event.set()

    def _shutdown_step(self, name: str, action) -> None:
        # Un paso que falla no impide los siguientes
        try:
            action()
        except Exception as e:
            logger.error(f"❌ Error en shutdown ({name}): {e}", exc_info=True)

    def _stop_detection(self):
        stats = self.controller.get_stats()
        self.controller.stop()
        logger.info(f"📊 Detection stats: {stats}")

    def _close_data_plane(self):
        logger.info(f"📊 Data Plane stats: {self.data_plane.get_stats()}")
        self.data_plane.disconnect()

    def cleanup(self):
        """Orden: detección → planes → audio."""
        logger.info("🧹 Limpiando recursos...")

        if self.controller is not None:
            self._shutdown_step("detection", self._stop_detection)
        if self.control_plane is not None:
            self._shutdown_step("control_plane", self.control_plane.disconnect)
        if self.data_plane is not None:
            self._shutdown_step("data_plane", self._close_data_plane)
        if self.audio_service is not None:
            self._shutdown_step("audio", self.audio_service.dispose)

        logger.info("👋 Hasta luego!")


def load_config(config_path: str) -> ThirdEyeConfig:
    """
    Carga config desde YAML o defaults si el archivo no existe.

    Raises:
        ValidationError: Si la configuración es inválida
    """
    if Path(config_path).exists():
        config = ThirdEyeConfig.from_yaml(config_path)
        print(f"✅ Config loaded and validated from {config_path}")
    else:
        config = ThirdEyeConfig()
        print(f"⚠️  Config file not found ({config_path}), using defaults")
    return config


def main(argv=None):
    """Punto de entrada principal"""
    load_dotenv()

    parser = argparse.ArgumentParser(description="ThirdEye detection & audio feedback")
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to config.yaml (default: {DEFAULT_CONFIG_PATH})"
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ValidationError as e:
        print("❌ Invalid configuration:")
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error['loc'])
            print(f"   • {field}: {error['msg']}")
        print(f"\nPlease fix {args.config} and try again.")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        sys.exit(1)

    setup_logging(
        level=config.logging.level,
        indent=config.logging.json_indent,
        log_file=config.logging.file,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
        library_levels={"paho": config.logging.paho_level},
        static_fields={"device_id": config.logging.device_id} if config.logging.device_id else None,
    )
    logger.info("🔧 ThirdEye starting...")

    app = ThirdEyeApplication(config)
    try:
        exit_code = app.run()
    except Exception as e:
        logger.error(f"❌ Error fatal: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
