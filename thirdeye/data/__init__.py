"""
Data Plane - MQTT Data Publishing (QoS 0)
"""
from .plane import MQTTDataPlane
from .sinks import create_mqtt_sink

__all__ = ["MQTTDataPlane", "create_mqtt_sink"]
