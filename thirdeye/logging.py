"""
Structured Logging
==================

Logs JSON (python-json-logger) para sesiones de detección, cues de audio y
tráfico MQTT.

- Un trace por sesión de detección (contextvars), inyectado en cada record
- Salida a stdout o a archivo con rotación
- Helpers con `component` + `event` para los casos frecuentes

Usage:
    from thirdeye.logging import setup_logging, trace_context, generate_trace_id

    setup_logging(level="DEBUG", log_file="logs/thirdeye.log")

    with trace_context(generate_trace_id("session")):
        logger.info("▶️ Detection started", extra={"component": "controller", "event": "started"})
"""
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

_current_trace: ContextVar[Optional[str]] = ContextVar("thirdeye_trace_id", default=None)

DEFAULT_MAX_BYTES = 10 * 1024 * 1024


# ============================================================================
# Trace Context
# ============================================================================

def get_trace_id() -> Optional[str]:
    """Trace activo en el contexto actual (None fuera de una sesión/comando)."""
    return _current_trace.get()


def generate_trace_id(prefix: str = "trace") -> str:
    """Ej: generate_trace_id("session") -> "session-3f9a1c2b"."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def trace_context(trace_id: Optional[str] = None):
    """
    Activa un trace_id para todo lo que se loguee dentro del bloque.

    Los threads no heredan el contexto: el controller lo reabre en cada
    tick con el trace de la sesión.
    """
    token = _current_trace.set(trace_id or generate_trace_id())
    try:
        yield _current_trace.get()
    finally:
        _current_trace.reset(token)


# ============================================================================
# Setup
# ============================================================================

def _make_formatter(indent: Optional[int], static_fields: Mapping[str, Any]) -> logging.Formatter:
    from pythonjsonlogger import jsonlogger

    class SessionJsonFormatter(jsonlogger.JsonFormatter):
        # level/logger en vez de levelname/name; trace_id del contexto si falta
        def add_fields(self, log_record, record, message_dict):
            super().add_fields(log_record, record, message_dict)
            log_record["level"] = log_record.pop("levelname", record.levelname)
            log_record["logger"] = log_record.pop("name", record.name)
            if "trace_id" not in log_record and get_trace_id():
                log_record["trace_id"] = get_trace_id()
            for key, value in static_fields.items():
                log_record.setdefault(key, value)

    return SessionJsonFormatter(
        "%(timestamp)s %(levelname)s %(name)s %(message)s",
        timestamp=True,
        json_indent=indent,
    )


def _make_handler(log_file: Optional[str], max_bytes: int, backup_count: int) -> logging.Handler:
    if not log_file:
        return logging.StreamHandler(sys.stdout)

    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    print(
        f"📄 Logging to file: {path} ({max_bytes // (1024 * 1024)}MB x {backup_count} backups)",
        file=sys.stderr,
    )
    return RotatingFileHandler(
        filename=str(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


def setup_logging(
    level: str = "INFO",
    indent: Optional[int] = None,
    log_file: Optional[str] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = 5,
    static_fields: Optional[Dict[str, Any]] = None,
    library_levels: Optional[Dict[str, str]] = None,
) -> None:
    """
    Reemplaza los handlers del root logger por un único handler JSON.

    Args:
        level: Nivel del root logger
        indent: json_indent (None = una línea por record)
        log_file: Archivo con rotación; None = stdout
        max_bytes: Tamaño por archivo antes de rotar
        backup_count: Archivos rotados a conservar
        static_fields: Campos agregados a todo record (ej: {"device": "cam-01"})
        library_levels: Niveles para loggers de terceros (ej: {"paho": "WARNING"})
    """
    handler = _make_handler(log_file, max_bytes, backup_count)
    handler.setFormatter(_make_formatter(indent, static_fields or {}))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name, library_level in (library_levels or {}).items():
        logging.getLogger(name).setLevel(library_level.upper())


def get_component_logger(component: str) -> logging.Logger:
    """Logger bajo el namespace del paquete: "audio" -> thirdeye.audio."""
    return logging.getLogger(f"thirdeye.{component}")


# ============================================================================
# Helpers
# ============================================================================

def log_mqtt_command(
    logger: logging.Logger,
    command: str,
    topic: str,
    payload: Optional[Dict[str, Any]] = None,
    trace_id: Optional[str] = None,
) -> None:
    extra = {
        "component": "control_plane",
        "event": "command_received",
        "command": command,
        "mqtt_topic": topic,
        "trace_id": trace_id or get_trace_id(),
    }
    if payload:
        extra["payload"] = payload
    logger.info(f"📥 Comando recibido: {command}", extra=extra)


def log_mqtt_publish(
    logger: logging.Logger,
    topic: str,
    qos: int,
    payload_size: int,
    success: bool = True,
    error_code: Optional[int] = None,
    num_detections: Optional[int] = None,
    component: str = "data_plane",
) -> None:
    """
    Publicación MQTT: debug si salió, warning con el rc de paho si no.
    """
    extra: Dict[str, Any] = {
        "component": component,
        "event": "published" if success else "publish_failed",
        "mqtt_topic": topic,
        "qos": qos,
        "payload_size_bytes": payload_size,
    }
    if num_detections is not None:
        extra["num_detections"] = num_detections

    if success:
        logger.debug(f"📤 Publicado en {topic}", extra=extra)
    else:
        extra["mqtt_error_code"] = error_code
        logger.warning(f"⚠️ Falló publicación en {topic} (rc={error_code})", extra=extra)


def log_tick_stats(
    logger: logging.Logger,
    generation: int,
    raw_count: int,
    ingested_count: int,
    sanitized_count: int,
    stabilized_count: int,
    matched_count: int = 0,
    component: str = "controller",
) -> None:
    """
    Conteos por etapa de un tick aceptado (debug: un record por tick).

    raw (source) → ingested (tipado + confianza) → sanitized (bounds + dedup)
    → stabilized (publicados), con matched = suavizados contra el tick previo.
    """
    logger.debug(
        f"Tick {generation}: {raw_count} raw → {stabilized_count} stabilized (matched={matched_count})",
        extra={
            "component": component,
            "event": "tick",
            "generation": generation,
            "tick": {
                "raw_count": raw_count,
                "ingested_count": ingested_count,
                "sanitized_count": sanitized_count,
                "stabilized_count": stabilized_count,
                "matched_count": matched_count,
            },
        },
    )


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    exception: Optional[BaseException] = None,
    component: str = "unknown",
    event: Optional[str] = None,
    trace_id: Optional[str] = None,
    **context: Any,
) -> None:
    """
    Error con component/event, tipo de excepción y contexto libre.

    Con `exception` el record lleva traceback (exc_info).
    """
    extra: Dict[str, Any] = dict(context)
    extra["component"] = component
    extra["trace_id"] = trace_id or get_trace_id()
    if event:
        extra["event"] = event

    if exception is None:
        logger.error(message, extra=extra)
        return

    extra["error_type"] = type(exception).__name__
    extra["error_message"] = str(exception)
    logger.error(f"{message}: {exception}", extra=extra, exc_info=exception)


__all__ = [
    "setup_logging",
    "get_component_logger",
    "trace_context",
    "get_trace_id",
    "generate_trace_id",
    "log_mqtt_command",
    "log_mqtt_publish",
    "log_tick_stats",
    "log_error_with_context",
]
