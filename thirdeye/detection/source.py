"""
Raw Detection Sources
=====================

Proveedores de candidatos crudos por tick.

El pipeline es agnóstico al origen: cualquier DetectionSource que entregue
registros con forma de DetectedObject (label, confidence, box) sirve.
MockDetectionSource simula un detector ruidoso:
- Jitter posicional sobre los objetos persistidos (movimiento)
- Spawn de 0..max_new_objects objetos nuevos cada spawn_every generaciones
- Dropout aleatorio (falsos negativos intermitentes)
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from .models import BoundingBox, DetectedObject, new_object_id


class DetectionSource(ABC):
    """
    Contrato del input boundary.

    next_candidates recibe el set persistido (solo lectura) y la generación
    actual, y retorna candidatos crudos (Mapping o DetectedObject).
    """

    @abstractmethod
    def next_candidates(
        self,
        persisted: Sequence[DetectedObject],
        generation: int,
    ) -> List[Any]:
        pass

    def reset(self) -> None:
        """Hook de inicio de sesión (default: no-op)."""


@dataclass(frozen=True)
class ObjectDefinition:
    """Perfil de spawn de una categoría en el detector simulado."""
    label: str
    size_range: Tuple[float, float]
    confidence_range: Tuple[float, float]
    spawn_chance: float


OBJECT_DEFINITIONS: Tuple[ObjectDefinition, ...] = (
    ObjectDefinition('person', (0.1, 0.4), (0.85, 0.98), 0.6),
    ObjectDefinition('chair', (0.05, 0.2), (0.82, 0.95), 0.4),
    ObjectDefinition('table', (0.1, 0.3), (0.8, 0.95), 0.3),
    ObjectDefinition('cup', (0.02, 0.08), (0.75, 0.92), 0.2),
    ObjectDefinition('book', (0.02, 0.1), (0.78, 0.94), 0.2),
    ObjectDefinition('phone', (0.01, 0.06), (0.8, 0.96), 0.2),
    ObjectDefinition('laptop', (0.08, 0.25), (0.85, 0.97), 0.3),
    ObjectDefinition('door', (0.15, 0.4), (0.82, 0.96), 0.3),
    ObjectDefinition('window', (0.1, 0.35), (0.8, 0.95), 0.3),
)

OBJECT_LABELS = tuple(d.label for d in OBJECT_DEFINITIONS)


class MockDetectionSource(DetectionSource):
    """
    Detector simulado con RNG de numpy (seedable para tests/reproducción).

    Args:
        spawn_every: Inyecta objetos nuevos cada N generaciones
        max_new_objects: Máximo de spawns por generación (0..max inclusive)
        dropout_rate: Probabilidad de "perder" un objeto en un tick
        jitter: Amplitud pico a pico del movimiento por tick
        seed: Seed del generador (None = no determinístico)
        definitions: Perfiles de spawn
    """

    def __init__(
        self,
        spawn_every: int = 3,
        max_new_objects: int = 2,
        dropout_rate: float = 0.1,
        jitter: float = 0.02,
        seed: Optional[int] = None,
        definitions: Sequence[ObjectDefinition] = OBJECT_DEFINITIONS,
    ):
        self.spawn_every = spawn_every
        self.max_new_objects = max_new_objects
        self.dropout_rate = dropout_rate
        self.jitter = jitter
        self.definitions = tuple(definitions)
        self._seed = seed
        self._rng = np.random.default_rng(seed)

    def reset(self) -> None:
        if self._seed is not None:
            self._rng = np.random.default_rng(self._seed)

    def next_candidates(
        self,
        persisted: Sequence[DetectedObject],
        generation: int,
    ) -> List[Any]:
        candidates: List[Any] = self.move(persisted)

        if generation % self.spawn_every == 0:
            count = int(self._rng.integers(0, self.max_new_objects + 1))
            candidates.extend(self.spawn(count))

        return [obj for obj in candidates if self._rng.random() >= self.dropout_rate]

    def move(self, persisted: Sequence[DetectedObject]) -> List[DetectedObject]:
        """
        Jitter independiente por objeto, clamped para mantener el box en frame.

        Cada objeto movido recibe un id nuevo (la identidad no es estable).
        """
        moved = []
        for obj in persisted:
            box = obj.bounding_box
            dx, dy = (self._rng.random(2) - 0.5) * self.jitter
            x = min(max(0.0, box.x + dx), 1.0 - box.width)
            y = min(max(0.0, box.y + dy), 1.0 - box.height)
            moved.append(obj.with_box(
                BoundingBox(x=float(x), y=float(y), width=box.width, height=box.height),
                object_id=new_object_id(obj.label),
            ))
        return moved

    def spawn(self, count: int) -> List[dict]:
        """
        Genera hasta `count` candidatos nuevos como registros crudos.

        Por cada intento, cada definición entra al sorteo con su
        spawn_chance; si ninguna entra, el intento no produce objeto.
        """
        records = []
        for _ in range(count):
            eligible = [d for d in self.definitions if self._rng.random() < d.spawn_chance]
            if not eligible:
                continue

            definition = eligible[int(self._rng.integers(len(eligible)))]
            size_min, size_max = definition.size_range
            width_range = size_max - size_min
            height_range = width_range * (0.8 + self._rng.random() * 0.4)

            width = size_min + self._rng.random() * width_range
            height = size_min + self._rng.random() * height_range
            x = self._rng.random() * (0.9 - width)
            y = self._rng.random() * (0.9 - height)

            conf_min, conf_max = definition.confidence_range
            confidence = conf_min + self._rng.random() * (conf_max - conf_min)

            records.append({
                'id': new_object_id(definition.label),
                'label': definition.label,
                'confidence': float(confidence),
                'boundingBox': {
                    'x': float(x),
                    'y': float(y),
                    'width': float(width),
                    'height': float(height),
                },
            })
        return records
