"""
Camera Permission Tests
=======================

Invariantes testeadas:
1. DevicePermissionProvider: device ausente → False, no legible → PermissionError
2. El controller traduce ambas fallas a flags + mensaje, sin propagar
3. SessionBuilder elige el provider según camera.provider
4. setup() de la aplicación falla si el device no existe
"""
import pytest

from thirdeye.app.builder import SessionBuilder
from thirdeye.app.controller import CAMERA_DENIED_MESSAGE
from thirdeye.app.main import ThirdEyeApplication
from thirdeye.app.permissions import DevicePermissionProvider, StaticPermissionProvider
from thirdeye.config.schemas import ThirdEyeConfig


@pytest.fixture
def video_device(tmp_path):
    device = tmp_path / "video0"
    device.write_bytes(b"")
    return device


@pytest.fixture
def unreadable(monkeypatch):
    """os.access() niega lectura (chmod no sirve si los tests corren como root)."""
    monkeypatch.setattr("thirdeye.app.permissions.os.access", lambda path, mode: False)


def device_config(path, **detection):
    return ThirdEyeConfig(
        camera={"provider": "device", "device_path": str(path)},
        detection={"tick_period_ms": 60000, **detection},
    )


@pytest.mark.unit
class TestDevicePermissionProvider:
    """Tests de DevicePermissionProvider.request()"""

    def test_readable_device_granted(self, video_device):
        assert DevicePermissionProvider(str(video_device)).request() is True

    def test_missing_device_denied(self, tmp_path):
        assert DevicePermissionProvider(str(tmp_path / "video9")).request() is False

    def test_unreadable_device_raises(self, video_device, unreadable):
        with pytest.raises(PermissionError):
            DevicePermissionProvider(str(video_device)).request()


@pytest.mark.unit
class TestControllerCameraFailures:
    """Tests de DetectionController.request_camera_permission() con device real"""

    def test_missing_device(self, tmp_path):
        controller = SessionBuilder(device_config(tmp_path / "video9")).build_controller()

        assert controller.request_camera_permission() is False
        assert controller.has_camera_permission is False
        assert controller.is_camera_ready is False
        assert controller.error == CAMERA_DENIED_MESSAGE

    def test_unreadable_device_does_not_raise(self, video_device, unreadable):
        controller = SessionBuilder(device_config(video_device)).build_controller()

        assert controller.request_camera_permission() is False
        assert controller.error == CAMERA_DENIED_MESSAGE
        assert controller.is_loading is False

    def test_start_without_device_stays_idle(self, tmp_path):
        controller = SessionBuilder(device_config(tmp_path / "video9")).build_controller()

        assert controller.start() is False
        assert not controller.is_running


@pytest.mark.unit
class TestProviderSelection:
    """Tests de SessionBuilder.build_permissions()"""

    def test_default_is_static_granted(self):
        provider = SessionBuilder(ThirdEyeConfig()).build_permissions()

        assert isinstance(provider, StaticPermissionProvider)
        assert provider.request() is True

    def test_static_denied(self):
        provider = SessionBuilder(ThirdEyeConfig(camera={"granted": False})).build_permissions()

        assert provider.request() is False

    def test_device_provider(self, video_device):
        provider = SessionBuilder(device_config(video_device)).build_permissions()

        assert isinstance(provider, DevicePermissionProvider)
        assert provider.device_path == str(video_device)

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValueError):
            ThirdEyeConfig(camera={"provider": "usb"})


@pytest.mark.integration
class TestApplicationCamera:
    """Tests de ThirdEyeApplication.setup() con camera.provider=device"""

    def test_setup_fails_without_device(self, tmp_path):
        app = ThirdEyeApplication(device_config(tmp_path / "video9"))

        try:
            assert app.setup() is False
            assert app.controller.error == CAMERA_DENIED_MESSAGE
        finally:
            app.cleanup()

    def test_setup_with_readable_device(self, video_device):
        app = ThirdEyeApplication(device_config(video_device))

        try:
            assert app.setup() is True
            assert app.controller.is_running
        finally:
            app.cleanup()
