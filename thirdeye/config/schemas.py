"""
Configuration Schemas
=====================

Configuración de ThirdEye validada con Pydantic v2 al cargar (un valor
fuera de rango falla en el arranque, no en mitad de una sesión).

Secciones: detection, quality, stabilization, camera, audio, mqtt, logging.
Overrides por entorno: THIRDEYE_<SECTION>__<FIELD> (pydantic-settings).

Usage:
    config = ThirdEyeConfig.from_yaml("config/thirdeye/config.yaml")

Nota: los umbrales de distancia (0.15 / 0.05 de área) NO son configurables,
viven en detection.geometry.
"""
from typing import Literal, Optional
from pathlib import Path
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import os


# ============================================================================
# Detection Cycle Configuration
# ============================================================================

class DetectionSettings(BaseModel):
    """Detection cycle (tick) settings"""
    tick_period_ms: int = Field(
        default=300,
        ge=10,
        description="Nominal period of the tick source"
    )
    min_tick_interval_ms: int = Field(
        default=200,
        ge=0,
        description="Minimum elapsed time between accepted ticks"
    )
    spawn_every: int = Field(
        default=3,
        ge=1,
        description="Inject new candidates every N generations"
    )
    max_new_objects: int = Field(
        default=2,
        ge=0,
        description="Maximum candidates injected per spawn generation"
    )
    dropout_rate: float = Field(
        default=0.1,
        ge=0.0,
        lt=1.0,
        description="Probability that the mock detector misses an object"
    )
    jitter: float = Field(
        default=0.02,
        ge=0.0,
        le=0.2,
        description="Peak-to-peak positional jitter applied per tick"
    )
    seed: Optional[int] = Field(
        default=None,
        description="RNG seed for the mock detection source"
    )

    @model_validator(mode='after')
    def validate_interval_order(self):
        """Min interval must be <= nominal period"""
        if self.min_tick_interval_ms > self.tick_period_ms:
            raise ValueError(
                f"min_tick_interval_ms ({self.min_tick_interval_ms}) must be <= "
                f"tick_period_ms ({self.tick_period_ms})"
            )
        return self


class QualitySettings(BaseModel):
    """Quality filter settings"""
    confidence_threshold: float = Field(
        default=0.75,
        description="Minimum confidence to keep a detection"
    )


class StabilizationSettings(BaseModel):
    """Cross-frame smoothing settings"""
    iou_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="IoU above which two same-label boxes are the same object"
    )
    new_weight: float = Field(
        default=0.7,
        gt=0.0,
        le=1.0,
        description="Weight of the new observation in the moving average"
    )


# ============================================================================
# Audio Configuration
# ============================================================================

class AudioSettings(BaseModel):
    """Audio dispatch settings"""
    enabled: bool = Field(
        default=True,
        description="Dispatch audio for published detections"
    )
    muted: bool = Field(
        default=False,
        description="Start muted"
    )
    stagger_ms: int = Field(
        default=150,
        ge=0,
        description="Delay between consecutive objects (index * stagger)"
    )
    near_duration_ms: int = Field(
        default=400,
        ge=1,
        description="Tone duration for near objects"
    )
    default_duration_ms: int = Field(
        default=200,
        ge=1,
        description="Tone duration for medium/far objects"
    )
    announce_nearby: bool = Field(
        default=True,
        description="Speak '<label> nearby' for near objects"
    )
    announce_window_s: float = Field(
        default=3.0,
        gt=0.0,
        description="Seconds before an announced object can be announced again"
    )
    speech_rate: float = Field(
        default=1.0,
        gt=0.0,
        le=10.0,
        description="Speech rate"
    )
    speech_pitch: float = Field(
        default=1.0,
        ge=0.0,
        le=2.0,
        description="Speech pitch"
    )


# ============================================================================
# Camera
# ============================================================================

class CameraSettings(BaseModel):
    """
    Adquisición de cámara.

    - static: resultado fijo (`granted`), para headless y demos
    - device: requiere `device_path` existente y legible
    """
    provider: Literal['static', 'device'] = 'static'
    device_path: str = "/dev/video0"
    granted: bool = True


# ============================================================================
# MQTT (opcional: control/data planes)
# ============================================================================

LogLevel = Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
QoS = Literal[0, 1, 2]


class MQTTBrokerSettings(BaseModel):
    host: str = "localhost"
    port: int = Field(default=1883, ge=1, le=65535)
    # Credenciales: MQTT_USERNAME / MQTT_PASSWORD (ver ThirdEyeConfig.from_yaml)
    username: Optional[str] = None
    password: Optional[str] = None


class MQTTTopicsSettings(BaseModel):
    control_commands: str = "thirdeye/control/commands"
    control_status: str = "thirdeye/control/status"
    data: str = "thirdeye/data/objects"

    @field_validator('control_commands', 'control_status', 'data')
    @classmethod
    def no_wildcards(cls, v: str) -> str:
        """Topics de publish/subscribe concretos: sin '+' ni '#'."""
        if not v or '+' in v or '#' in v:
            raise ValueError(f"invalid MQTT topic: {v!r}")
        return v


class MQTTQoSSettings(BaseModel):
    control: QoS = 1
    data: QoS = 0


class MQTTSettings(BaseModel):
    """Expone Control Plane + Data Plane cuando enabled=True."""
    enabled: bool = False
    broker: MQTTBrokerSettings = Field(default_factory=MQTTBrokerSettings)
    topics: MQTTTopicsSettings = Field(default_factory=MQTTTopicsSettings)
    qos: MQTTQoSSettings = Field(default_factory=MQTTQoSSettings)


# ============================================================================
# Logging
# ============================================================================

class LoggingSettings(BaseModel):
    """JSON structured logging (ver thirdeye.logging.setup_logging)."""
    level: LogLevel = 'INFO'
    paho_level: LogLevel = 'WARNING'
    json_indent: Optional[int] = Field(default=None, ge=0, le=4)
    device_id: Optional[str] = Field(default=None, description="Se agrega a cada record si está definido")
    file: Optional[str] = Field(default=None, description="None = stdout; con archivo, rotación")
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)
    backup_count: int = Field(default=5, ge=0)

    @field_validator('level', 'paho_level', mode='before')
    @classmethod
    def normalize_level(cls, v):
        return v.upper() if isinstance(v, str) else v


# ============================================================================
# Root
# ============================================================================

class ThirdEyeConfig(BaseSettings):
    """
    Configuración raíz.

    Prioridad: valores explícitos (YAML) > THIRDEYE_<SECTION>__<FIELD> >
    defaults. Las credenciales MQTT salen siempre de MQTT_USERNAME /
    MQTT_PASSWORD si están definidas.
    """
    model_config = SettingsConfigDict(
        env_prefix='THIRDEYE_',
        env_nested_delimiter='__',
        extra='ignore',
    )

    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    quality: QualitySettings = Field(default_factory=QualitySettings)
    stabilization: StabilizationSettings = Field(default_factory=StabilizationSettings)
    camera: CameraSettings = Field(default_factory=CameraSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    mqtt: MQTTSettings = Field(default_factory=MQTTSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, config_path: str) -> 'ThirdEyeConfig':
        """
        Raises:
            FileNotFoundError: Si el archivo no existe
            ValidationError: Si algún valor es inválido
        """
        import yaml

        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path} "
                f"(template: config/thirdeye/config.yaml)"
            )

        with path.open('r', encoding='utf-8') as f:
            raw = yaml.safe_load(f) or {}

        broker = raw.setdefault('mqtt', {}).setdefault('broker', {})
        for key, env_var in (('username', 'MQTT_USERNAME'), ('password', 'MQTT_PASSWORD')):
            if os.getenv(env_var):
                broker[key] = os.getenv(env_var)

        return cls(**raw)
