"""
Detection Data Model
====================

Tipos estrictos para el pipeline de detección (ingestion boundary).

Diseño:
- Parse once: los registros crudos del detector se validan UNA vez al
  entrar (ver quality.ingest); downstream todo es DetectedObject.
- Inmutables (frozen): solo el controller reemplaza el set persistido.
- distance se recalcula SIEMPRE desde el box actual (nunca stale).
- id es opaco y se regenera cada tick: el matching es por label + IoU.
"""
import uuid
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .geometry import DISTANCE_TAGS, Distance, classify_distance


def new_object_id(label: str) -> str:
    """Genera un id opaco para un objeto detectado en este tick."""
    return f"{label}-{uuid.uuid4().hex[:12]}"


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class BoundingBox(BaseModel):
    """
    Box normalizado: (x, y) top-left, width/height relativos al frame.
    """
    model_config = ConfigDict(frozen=True)

    x: float = Field(strict=True, allow_inf_nan=False)
    y: float = Field(strict=True, allow_inf_nan=False)
    width: float = Field(strict=True, gt=0.0, allow_inf_nan=False)
    height: float = Field(strict=True, gt=0.0, allow_inf_nan=False)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def blend(self, other: 'BoundingBox', weight: float) -> 'BoundingBox':
        """
        Media ponderada campo a campo: weight*self + (1-weight)*other.

        Args:
            other: Box previo
            weight: Peso del box actual (0.7 en el stabilizer)
        """
        keep = 1.0 - weight
        return BoundingBox(
            x=self.x * weight + other.x * keep,
            y=self.y * weight + other.y * keep,
            width=self.width * weight + other.width * keep,
            height=self.height * weight + other.height * keep,
        )


class DetectedObject(BaseModel):
    """
    Unidad del pipeline de detección.

    Attributes:
        id: Token opaco, distinto en cada tick
        label: Categoría (person, chair, door, ...)
        confidence: Confianza del detector, no re-normalizada
        bounding_box: Box normalizado (alias 'boundingBox' en ingestión)
        distance: near/medium/far, derivado del área del box
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    label: str = Field(strict=True, min_length=1)
    confidence: float = Field(strict=True, allow_inf_nan=False)
    bounding_box: BoundingBox = Field(alias='boundingBox')
    distance: Distance

    @model_validator(mode='before')
    @classmethod
    def derive_distance(cls, data: Any) -> Any:
        """
        Rechaza tags de distancia inválidos y recalcula distance desde el box.

        Un tag válido pero stale se sobrescribe; un tag fuera de
        near/medium/far hace el registro estructuralmente inválido.
        """
        if not isinstance(data, Mapping):
            return data

        data = dict(data)
        supplied = data.get('distance')
        if supplied is not None and not (isinstance(supplied, str) and supplied in DISTANCE_TAGS):
            raise ValueError(f"distance must be one of {DISTANCE_TAGS}, got {supplied!r}")

        box = data.get('bounding_box', data.get('boundingBox'))
        if isinstance(box, BoundingBox):
            data['distance'] = classify_distance(box.width, box.height)
        elif isinstance(box, Mapping):
            width, height = box.get('width'), box.get('height')
            if is_number(width) and is_number(height):
                data['distance'] = classify_distance(width, height)

        return data

    @property
    def area(self) -> float:
        return self.bounding_box.area

    def with_box(
        self,
        box: BoundingBox,
        confidence: Optional[float] = None,
        object_id: Optional[str] = None,
    ) -> 'DetectedObject':
        """
        Nuevo objeto con otro box (distance recalculado).

        Args:
            box: Box nuevo
            confidence: Nueva confianza (default: la actual)
            object_id: Nuevo id (default: el actual)
        """
        return DetectedObject(
            id=object_id if object_id is not None else self.id,
            label=self.label,
            confidence=self.confidence if confidence is None else confidence,
            bounding_box=box,
        )

    def to_message(self) -> dict:
        """Formato JSON-friendly para publishers (data plane, UI)."""
        return {
            "id": self.id,
            "class": self.label,
            "confidence": self.confidence,
            "distance": self.distance.value,
            "bbox": {
                "x": self.bounding_box.x,
                "y": self.bounding_box.y,
                "width": self.bounding_box.width,
                "height": self.bounding_box.height,
            },
        }
