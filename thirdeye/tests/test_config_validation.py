"""
Config Validation Tests
=======================

Tests de validación de configuración con Pydantic.

Invariantes testeadas:
1. Valores por defecto son válidos (y coinciden con el comportamiento base)
2. Validación de rangos (iou, new_weight, dropout, qos)
3. Validación de relaciones (min_tick_interval_ms <= tick_period_ms)
4. Carga desde YAML + overrides de credenciales por entorno
"""
import pytest
from pydantic import ValidationError

from thirdeye.config.schemas import (
    AudioSettings,
    DetectionSettings,
    LoggingSettings,
    MQTTSettings,
    StabilizationSettings,
    ThirdEyeConfig,
)


@pytest.mark.unit
class TestDefaults:
    """Defaults del sistema"""

    def test_default_config_valid(self):
        config = ThirdEyeConfig()

        assert config.detection.tick_period_ms == 300
        assert config.detection.min_tick_interval_ms == 200
        assert config.detection.spawn_every == 3
        assert config.quality.confidence_threshold == 0.75
        assert config.stabilization.iou_threshold == 0.5
        assert config.stabilization.new_weight == 0.7
        assert config.audio.stagger_ms == 150
        assert config.audio.near_duration_ms == 400
        assert config.audio.default_duration_ms == 200
        assert config.mqtt.enabled is False

    def test_mqtt_qos_defaults(self):
        mqtt = MQTTSettings()
        assert mqtt.qos.control == 1
        assert mqtt.qos.data == 0

    def test_wildcard_topic_rejected(self):
        with pytest.raises(ValidationError):
            MQTTSettings(topics={"data": "thirdeye/data/#"})


@pytest.mark.unit
class TestDetectionSettingsValidation:
    """Tests de DetectionSettings"""

    def test_min_interval_must_not_exceed_period(self):
        with pytest.raises(ValidationError) as exc_info:
            DetectionSettings(tick_period_ms=100, min_tick_interval_ms=200)

        assert 'min_tick_interval_ms' in str(exc_info.value)

    def test_equal_interval_and_period_valid(self):
        settings = DetectionSettings(tick_period_ms=200, min_tick_interval_ms=200)
        assert settings.tick_period_ms == 200

    def test_dropout_rate_below_one(self):
        with pytest.raises(ValidationError):
            DetectionSettings(dropout_rate=1.0)

    def test_spawn_every_positive(self):
        with pytest.raises(ValidationError):
            DetectionSettings(spawn_every=0)


@pytest.mark.unit
class TestStabilizationSettingsValidation:
    """Tests de StabilizationSettings"""

    def test_iou_range(self):
        StabilizationSettings(iou_threshold=0.0)
        StabilizationSettings(iou_threshold=1.0)

        with pytest.raises(ValidationError):
            StabilizationSettings(iou_threshold=1.5)

    def test_new_weight_must_be_positive(self):
        with pytest.raises(ValidationError):
            StabilizationSettings(new_weight=0.0)


@pytest.mark.unit
class TestAudioAndLoggingValidation:
    """Tests de AudioSettings / LoggingSettings"""

    def test_announce_window_positive(self):
        with pytest.raises(ValidationError):
            AudioSettings(announce_window_s=0)

    def test_log_level_normalized(self):
        assert LoggingSettings(level="debug").level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            LoggingSettings(level="verbose")


@pytest.mark.unit
class TestYamlLoading:
    """Tests de ThirdEyeConfig.from_yaml()"""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ThirdEyeConfig.from_yaml(str(tmp_path / "missing.yaml"))

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        config = ThirdEyeConfig.from_yaml(str(path))

        assert config.detection.tick_period_ms == 300

    def test_values_loaded(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "detection:\n"
            "  tick_period_ms: 500\n"
            "  seed: 42\n"
            "audio:\n"
            "  muted: true\n"
            "mqtt:\n"
            "  enabled: true\n"
            "  broker:\n"
            "    host: broker.local\n"
        )

        config = ThirdEyeConfig.from_yaml(str(path))

        assert config.detection.tick_period_ms == 500
        assert config.detection.seed == 42
        assert config.audio.muted is True
        assert config.mqtt.broker.host == "broker.local"

    def test_invalid_yaml_values_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("stabilization:\n  iou_threshold: 2.0\n")

        with pytest.raises(ValidationError):
            ThirdEyeConfig.from_yaml(str(path))

    def test_mqtt_credentials_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("mqtt:\n  enabled: true\n")
        monkeypatch.setenv("MQTT_USERNAME", "thirdeye")
        monkeypatch.setenv("MQTT_PASSWORD", "secret")

        config = ThirdEyeConfig.from_yaml(str(path))

        assert config.mqtt.broker.username == "thirdeye"
        assert config.mqtt.broker.password == "secret"
