"""
Quality Filter
==============

Umbral de confianza + validación estructural en la frontera de ingestión.

- filter_by_confidence: mantiene confidence >= threshold (sin clamping)
- is_structurally_valid: distance válido, confidence numérico y box con 4
  campos numéricos
- ingest: parsea registros crudos a DetectedObject, descarta malformados
"""
import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from .geometry import DISTANCE_TAGS
from .models import DetectedObject, is_number

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.75

_BOX_FIELDS = ('x', 'y', 'width', 'height')


def filter_by_confidence(
    objects: Sequence[Any],
    threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
) -> List[Any]:
    """
    Retiene objetos con confidence >= threshold.

    El threshold NO se clampea: 1.1 descarta todo, 0 retiene todo.
    Acepta DetectedObject o mappings crudos; un mapping sin confidence
    numérico no pasa el umbral.
    """
    kept = []
    for obj in objects:
        confidence = _confidence_of(obj)
        if confidence is not None and confidence >= threshold:
            kept.append(obj)
    return kept


def _confidence_of(obj: Any) -> Optional[float]:
    if isinstance(obj, Mapping):
        value = obj.get('confidence')
        return value if is_number(value) else None
    return obj.confidence


def is_structurally_valid(record: Any) -> bool:
    """
    True si distance es near/medium/far, confidence es numérico y el box
    tiene 4 campos numéricos.

    Un DetectedObject es válido por construcción. Para registros crudos
    (Mapping) se chequea la forma, sin corregir ni defaultear nada.
    """
    if isinstance(record, DetectedObject):
        return True
    if not isinstance(record, Mapping):
        return False

    distance = record.get('distance')
    if not (isinstance(distance, str) and distance in DISTANCE_TAGS):
        return False

    if not is_number(record.get('confidence')):
        return False

    box = record.get('bounding_box', record.get('boundingBox'))
    if not isinstance(box, Mapping):
        return False

    return all(is_number(box.get(field)) for field in _BOX_FIELDS)


def ingest(raw_records: Iterable[Any]) -> List[DetectedObject]:
    """
    Frontera tipada: parsea registros crudos del detector a DetectedObject.

    Los registros malformados (geometría faltante/no numérica, distance
    inválido, tamaño <= 0) se descartan, nunca se reparan.

    Args:
        raw_records: Mappings crudos o DetectedObject ya tipados

    Returns:
        Lista de DetectedObject en el mismo orden de entrada
    """
    objects: List[DetectedObject] = []
    for record in raw_records:
        if isinstance(record, DetectedObject):
            objects.append(record)
            continue
        try:
            objects.append(DetectedObject.model_validate(record))
        except ValidationError as e:
            logger.debug(
                "Malformed detection dropped at ingestion",
                extra={
                    "component": "quality_filter",
                    "event": "record_rejected",
                    "error_count": e.error_count(),
                    "record_label": record.get('label') if isinstance(record, Mapping) else None,
                }
            )
    return objects
