"""
Frame Sanitizer
===============

Limpieza por frame antes de estabilizar:
- filter_out_of_frame: descarta objetos que salieron del frame visible
- deduplicate: un objeto por (label, celda de 0.1 del frame)
"""
import math
from typing import List, Sequence, Set, Tuple

from .models import DetectedObject

# Margen visible mínimo (5%) en cada eje
FRAME_MARGIN = 0.05


def filter_out_of_frame(objects: Sequence[DetectedObject]) -> List[DetectedObject]:
    """
    Mantiene objetos con al menos 5% visible en ambos ejes.

    keep iff x < 0.95 and x+width > 0.05 and y < 0.95 and y+height > 0.05.
    Tolera objetos recortados en los bordes del frame.
    """
    upper = 1.0 - FRAME_MARGIN
    kept = []
    for obj in objects:
        box = obj.bounding_box
        within_horizontal = box.x < upper and box.right > FRAME_MARGIN
        within_vertical = box.y < upper and box.bottom > FRAME_MARGIN
        if within_horizontal and within_vertical:
            kept.append(obj)
    return kept


def _round_half_up(value: float) -> int:
    # Semántica de Math.round (no banker's rounding de round())
    return math.floor(value + 0.5)


def dedup_key(obj: DetectedObject) -> Tuple[str, int, int]:
    """Key de duplicado: label + posición redondeada a 0.1 del frame."""
    box = obj.bounding_box
    return obj.label, _round_half_up(box.x * 10), _round_half_up(box.y * 10)


def deduplicate(objects: Sequence[DetectedObject]) -> List[DetectedObject]:
    """
    Colapsa objetos a uno por key; gana la primera ocurrencia.

    El tie-break es por orden de entrada (no por calidad). Idempotente.
    """
    seen: Set[Tuple[str, int, int]] = set()
    result = []
    for obj in objects:
        key = dedup_key(obj)
        if key in seen:
            continue
        seen.add(key)
        result.append(obj)
    return result
