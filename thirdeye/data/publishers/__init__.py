"""
Publishers
==========

Formatean mensajes MQTT (lógica de negocio). NO conocen detalles de MQTT.
"""
from .detection import DetectedObjectsPublisher

__all__ = ['DetectedObjectsPublisher']
