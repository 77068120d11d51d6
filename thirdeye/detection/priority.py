"""
Priority Ranker
===============

Orden determinístico de objetos para audio dispatch.

1. Distancia: near > medium > far
2. Misma distancia: comparator (areaB - areaA)*0.7 + (confB - confA)*0.5*0.3

El factor 0.5*0.3 sobre confidence se mantiene tal cual: cambia el
tie-break cerca del límite y el orden de reproducción depende de él.
"""
from functools import cmp_to_key
from typing import Any, List, Mapping, Sequence

from .geometry import Distance
from .quality import is_structurally_valid

AREA_WEIGHT = 0.7
CONFIDENCE_SCALE = 0.5
CONFIDENCE_WEIGHT = 0.3


def _fields(obj: Any):
    """(rank, area, confidence) para DetectedObject o registro crudo validado."""
    if isinstance(obj, Mapping):
        box = obj.get('bounding_box', obj.get('boundingBox'))
        return Distance(obj['distance']).rank, box['width'] * box['height'], obj['confidence']
    return obj.distance.rank, obj.area, obj.confidence


def compare_priority(a: Any, b: Any) -> float:
    """
    Comparator estilo cmp: negativo si a va antes que b.
    """
    rank_a, area_a, conf_a = _fields(a)
    rank_b, area_b, conf_b = _fields(b)

    if rank_a != rank_b:
        return rank_b - rank_a

    size_factor = area_b - area_a
    confidence_factor = (conf_b - conf_a) * CONFIDENCE_SCALE
    return size_factor * AREA_WEIGHT + confidence_factor * CONFIDENCE_WEIGHT


def sort_by_priority(objects: Sequence[Any]) -> List[Any]:
    """
    Filtra objetos estructuralmente inválidos y los ordena por prioridad.

    Returns:
        Lista nueva, mayor prioridad primero. El consumidor reproduce el
        objeto i con delay i * 150 ms.
    """
    valid = [obj for obj in objects if is_structurally_valid(obj)]
    return sorted(valid, key=cmp_to_key(compare_priority))
