"""
Camera Permission Providers
===========================

Único punto con modo de falla externo del sistema: adquirir la cámara.
El controller traduce fallas (False o excepción) a un flag + mensaje, nunca
las propaga.
"""
import os
from abc import ABC, abstractmethod


class CameraPermissionProvider(ABC):
    """Contrato: request() -> True si la cámara quedó disponible (puede lanzar)."""

    @abstractmethod
    def request(self) -> bool:
        pass


class StaticPermissionProvider(CameraPermissionProvider):
    """Resultado fijo (headless, demos, tests)."""

    def __init__(self, granted: bool = True):
        self.granted = granted
        self.requests = 0

    def request(self) -> bool:
        self.requests += 1
        return self.granted


class DevicePermissionProvider(CameraPermissionProvider):
    """
    Verifica acceso de lectura a un device de video (ej: /dev/video0).

    Raises:
        PermissionError: Si el device existe pero no es legible
    """

    def __init__(self, device_path: str = "/dev/video0"):
        self.device_path = device_path

    def request(self) -> bool:
        if not os.path.exists(self.device_path):
            return False
        if not os.access(self.device_path, os.R_OK):
            raise PermissionError(f"No read access to {self.device_path}")
        return True
