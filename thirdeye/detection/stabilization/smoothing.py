"""
Exponential Smoothing Stabilizer
================================

Suaviza posición y confianza de objetos que persisten entre ticks.

Problema resuelto:
- Detecciones ruidosas (posiciones independientes por tick) → parpadeo
  en overlays y audio

Solución:
- Cada objeto nuevo busca su match en el set del tick anterior
  (LabelIoUMatcher, greedy first-match)
- Si hay match: new' = 0.7*new + 0.3*prev (confidence, x, y, width, height)
- Si no: pasa sin cambios

No es un Kalman: sin velocidad ni predicción de oclusiones.
"""
from typing import List, Optional, Sequence, Tuple

from ..models import DetectedObject
from .matching import LabelIoUMatcher, MatchingStrategy

DEFAULT_NEW_WEIGHT = 0.7


def blend(
    new: DetectedObject,
    previous: DetectedObject,
    new_weight: float = DEFAULT_NEW_WEIGHT,
) -> DetectedObject:
    """
    Mezcla una detección con su match previo.

    Conserva id y label de la detección nueva; distance se recalcula
    desde el box mezclado.
    """
    keep = 1.0 - new_weight
    return new.with_box(
        new.bounding_box.blend(previous.bounding_box, new_weight),
        confidence=new.confidence * new_weight + previous.confidence * keep,
    )


def stabilize_with_stats(
    new_objects: Sequence[DetectedObject],
    previous_objects: Sequence[DetectedObject],
    matcher: Optional[MatchingStrategy] = None,
    new_weight: float = DEFAULT_NEW_WEIGHT,
) -> Tuple[List[DetectedObject], int]:
    """
    Como stabilize(), retornando además cuántos objetos matchearon.
    """
    if not previous_objects:
        return list(new_objects), 0

    matcher = matcher or LabelIoUMatcher()
    stabilized = []
    matched = 0
    for obj in new_objects:
        previous = matcher.find_match(obj, previous_objects)
        if previous is None:
            stabilized.append(obj)
        else:
            stabilized.append(blend(obj, previous, new_weight))
            matched += 1
    return stabilized, matched


def stabilize(
    new_objects: Sequence[DetectedObject],
    previous_objects: Sequence[DetectedObject],
    matcher: Optional[MatchingStrategy] = None,
    new_weight: float = DEFAULT_NEW_WEIGHT,
) -> List[DetectedObject]:
    """
    Estabiliza detecciones nuevas contra el set persistido anterior.

    Args:
        new_objects: Detecciones del tick actual (ya sanitizadas)
        previous_objects: Set publicado en el tick anterior
        matcher: Definición de identidad (default: LabelIoUMatcher(0.5))
        new_weight: Peso de la observación nueva (default 0.7)

    Returns:
        Lista en el orden de new_objects. Identidad si previous está vacío.
    """
    stabilized, _ = stabilize_with_stats(new_objects, previous_objects, matcher, new_weight)
    return stabilized
