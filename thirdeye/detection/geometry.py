"""
Detection Geometry Module
=========================

Bounded Context: Shape Algebra sobre bounding boxes normalizados.

Pure functions (sin side effects) usadas por stabilizer, sanitizer,
priority ranker y audio:
- intersection_over_union: matching espacial entre frames
- classify_distance: near/medium/far desde el área del box
- estimate_distance_meters / is_object_nearby: proximidad para alertas

Formato de box: top-left (x, y) + (width, height), normalizado a [0, 1].
Acepta BoundingBox o cualquier Mapping con las cuatro keys.

Los umbrales son FIJOS (compatibilidad de comportamiento), no configurables.
"""
from enum import Enum
from typing import Any, Tuple


class Distance(str, Enum):
    """Categoría de distancia derivada del área del bounding box."""
    NEAR = "near"
    MEDIUM = "medium"
    FAR = "far"

    @property
    def rank(self) -> int:
        """Prioridad para audio: near=3, medium=2, far=1."""
        return _DISTANCE_RANKS[self]


_DISTANCE_RANKS = {Distance.NEAR: 3, Distance.MEDIUM: 2, Distance.FAR: 1}

DISTANCE_TAGS = tuple(d.value for d in Distance)

NEAR_AREA_THRESHOLD = 0.15
MEDIUM_AREA_THRESHOLD = 0.05

PROXIMITY_ALERT_METERS = 2.0

# (área mínima exclusiva, metros) de mayor a menor
_AREA_TO_METERS = (
    (0.35, 0.5),
    (0.18, 1.0),
    (0.1, 1.5),
    (0.07, 2.0),
    (0.04, 3.0),
    (0.02, 4.0),
)
_FARTHEST_METERS = 5.0


def _box_xywh(box: Any) -> Tuple[float, float, float, float]:
    if hasattr(box, 'keys'):
        return box['x'], box['y'], box['width'], box['height']
    return box.x, box.y, box.width, box.height


def intersection_over_union(box_a: Any, box_b: Any) -> float:
    """
    Calcula Intersection over Union (IoU) entre dos bounding boxes.

    Properties:
    - Simetría: IoU(A, B) = IoU(B, A)
    - Bounded: 0.0 <= IoU <= 1.0 para boxes válidos, salvo redondeo de
      float (IoU(A, A) puede dar 1.0000000000000007)
    - Disjoint: IoU(A, B) = 0.0 si no hay overlap en algún eje

    Args:
        box_a: {'x', 'y', 'width', 'height'} top-left, normalizado
        box_b: {'x', 'y', 'width', 'height'} top-left, normalizado

    Returns:
        IoU score. 0.0 si el rectángulo de intersección es vacío.

    Example:
        >>> a = {'x': 0.1, 'y': 0.1, 'width': 0.2, 'height': 0.2}
        >>> b = {'x': 0.2, 'y': 0.1, 'width': 0.2, 'height': 0.2}
        >>> round(intersection_over_union(a, b), 4)
        0.3333
    """
    ax, ay, aw, ah = _box_xywh(box_a)
    bx, by, bw, bh = _box_xywh(box_b)

    x1 = max(ax, bx)
    y1 = max(ay, by)
    x2 = min(ax + aw, bx + bw)
    y2 = min(ay + ah, by + bh)

    if x1 >= x2 or y1 >= y2:
        return 0.0

    intersection = (x2 - x1) * (y2 - y1)
    union = aw * ah + bw * bh - intersection

    # Boxes degenerados (tamaño negativo) son responsabilidad del caller
    if union <= 0:
        return 0.0

    return intersection / union


def classify_distance(width: float, height: float) -> Distance:
    """
    Clasifica la distancia percibida según el área del box.

    near si área > 0.15, medium si área > 0.05, far en otro caso.
    """
    area = width * height
    if area > NEAR_AREA_THRESHOLD:
        return Distance.NEAR
    if area > MEDIUM_AREA_THRESHOLD:
        return Distance.MEDIUM
    return Distance.FAR


def estimate_distance_meters(width: float, height: float) -> float:
    """
    Estima la distancia en metros a partir del área del box.

    Lookup monotónico (más área → más cerca), calibrado para objetos de
    tamaño humano con un FOV de cámara típico.
    """
    area = width * height
    for min_area, meters in _AREA_TO_METERS:
        if area > min_area:
            return meters
    return _FARTHEST_METERS


def is_object_nearby(width: float, height: float) -> bool:
    """True si el objeto está estimado a <= 2 metros (proximity alert)."""
    return estimate_distance_meters(width, height) <= PROXIMITY_ALERT_METERS
