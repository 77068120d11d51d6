"""
Control Plane - MQTT Command Handling (QoS 1)
"""
from .plane import MQTTControlPlane
from .registry import CommandRegistry, CommandNotAvailableError

__all__ = ["MQTTControlPlane", "CommandRegistry", "CommandNotAvailableError"]
