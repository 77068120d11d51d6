#!/usr/bin/env python3
"""
Control CLI
===========

Envía un comando al Control Plane de ThirdEye y sale.

    python -m thirdeye.control.cli start
    python -m thirdeye.control.cli mute --broker 192.168.1.10
    MQTT_USERNAME=... MQTT_PASSWORD=... thirdeye-control stats

El resultado de status/stats llega por el topic de status (retained).
"""
import argparse
import json
import os
import sys
from typing import List, Optional

import paho.mqtt.client as mqtt

COMMANDS = ("start", "stop", "status", "stats", "mute", "unmute")


def send_command(
    broker: str,
    port: int,
    topic: str,
    command: str,
    qos: int = 1,
    username: Optional[str] = None,
    password: Optional[str] = None,
    timeout: float = 5.0,
) -> bool:
    """Publica `{"command": command}` y espera el ack del broker."""
    client = mqtt.Client(
        mqtt.CallbackAPIVersion.VERSION2,
        client_id="thirdeye_control_cli",
        protocol=mqtt.MQTTv5,
    )
    if username and password:
        client.username_pw_set(username, password)

    print(f"🔌 {broker}:{port}")
    try:
        client.connect(broker, port, keepalive=60)
    except OSError as e:
        print(f"❌ No se pudo conectar: {e}")
        return False

    client.loop_start()
    try:
        info = client.publish(topic, json.dumps({"command": command}), qos=qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            print(f"❌ Publish rechazado (rc={info.rc})")
            return False
        info.wait_for_publish(timeout=timeout)
        if not info.is_published():
            print(f"❌ Sin confirmación del broker en {timeout}s")
            return False
        print(f"✅ '{command}' → {topic}")
        return True
    finally:
        client.disconnect()
        client.loop_stop()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Envía comandos al Control Plane de ThirdEye")
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--broker", default="localhost", help="MQTT broker host (default: localhost)")
    parser.add_argument("--port", type=int, default=1883)
    parser.add_argument("--topic", default="thirdeye/control/commands")
    parser.add_argument("--qos", type=int, choices=(0, 1, 2), default=1)
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    ok = send_command(
        args.broker,
        args.port,
        args.topic,
        args.command,
        qos=args.qos,
        username=os.getenv("MQTT_USERNAME"),
        password=os.getenv("MQTT_PASSWORD"),
    )
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
