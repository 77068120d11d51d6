"""
Spatial Matching Utilities
==========================

Bounded Context: Identidad cross-frame (qué objeto del tick anterior es este).

Los ids se regeneran cada tick, así que la identidad es label + geometría.
Este matcher es la ÚNICA definición de identidad del sistema: la usa el
stabilizer para suavizar y el AnnouncementTracker de audio para no
re-anunciar el mismo objeto.

Design:
- Strategy pattern (MatchingStrategy) para el score de similitud
- Greedy first-match: gana el primer candidato (en orden) que supere el
  threshold; no hay asignación global óptima
"""
from abc import ABC, abstractmethod
from typing import Iterable, Optional, TypeVar
import logging

from ..geometry import intersection_over_union
from ..models import DetectedObject

logger = logging.getLogger(__name__)

DEFAULT_IOU_THRESHOLD = 0.5

T = TypeVar('T')


class MatchingStrategy(ABC):
    """
    Base abstracta para estrategias de matching.

    Contract:
    - calculate_similarity: score [0, 1] entre dos objetos
    - get_threshold: score debe ser ESTRICTAMENTE mayor para matchear
    """

    @abstractmethod
    def calculate_similarity(
        self,
        candidate: DetectedObject,
        reference: DetectedObject,
    ) -> float:
        """
        Calcula similitud entre dos detecciones.

        Returns:
            Similarity score; 0.0 = no match
        """
        pass

    @abstractmethod
    def get_threshold(self) -> float:
        """Threshold (exclusivo) para considerar match válido."""
        pass

    def get_name(self) -> str:
        """Nombre de la strategy (para logging/debugging)."""
        return self.__class__.__name__

    def matches(self, candidate: DetectedObject, reference: DetectedObject) -> bool:
        return self.calculate_similarity(candidate, reference) > self.get_threshold()

    def find_match(
        self,
        candidate: DetectedObject,
        references: Iterable[T],
        key=None,
    ) -> Optional[T]:
        """
        Primer elemento de references que matchea con candidate.

        Args:
            candidate: Detección actual
            references: Detecciones previas (se respeta su orden)
            key: Extrae el DetectedObject de cada reference (default: identidad)

        Returns:
            Primer reference que matchea, o None
        """
        for reference in references:
            obj = key(reference) if key is not None else reference
            if self.matches(candidate, obj):
                return reference
        return None


class LabelIoUMatcher(MatchingStrategy):
    """
    Mismo objeto = mismo label y IoU > threshold.

    Threshold:
    - 0.5 por defecto (objetos que se mueven poco entre ticks de 300 ms)
    """

    def __init__(self, threshold: float = DEFAULT_IOU_THRESHOLD):
        self.threshold = threshold

    def calculate_similarity(
        self,
        candidate: DetectedObject,
        reference: DetectedObject,
    ) -> float:
        """
        IoU entre los boxes si el label coincide, 0.0 si no.
        """
        if candidate.label != reference.label:
            return 0.0
        return intersection_over_union(candidate.bounding_box, reference.bounding_box)

    def get_threshold(self) -> float:
        return self.threshold

    def __repr__(self) -> str:
        return f"LabelIoUMatcher(threshold={self.threshold})"
