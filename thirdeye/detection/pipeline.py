"""
Detection Pipeline
==================

Composición pura de un tick:

    raw → ingest + confidence → bounds → dedup → stabilize(previous)

Sin estado: el set previo entra como argumento y el resultado sale como
valor. El estado persistido vive solo en el controller.
"""
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from .models import DetectedObject
from .quality import DEFAULT_CONFIDENCE_THRESHOLD, filter_by_confidence, ingest
from .sanitizer import deduplicate, filter_out_of_frame
from .stabilization import DEFAULT_NEW_WEIGHT, LabelIoUMatcher, MatchingStrategy, stabilize_with_stats


@dataclass(frozen=True)
class PipelineResult:
    """Salida de un tick + conteos por etapa (para logging/stats)."""
    objects: Tuple[DetectedObject, ...]
    raw_count: int
    ingested_count: int
    sanitized_count: int
    matched_count: int


class DetectionPipeline:
    """
    Pipeline de estabilización configurado.

    Args:
        confidence_threshold: Umbral del quality filter (None = sin filtro)
        matcher: Identidad cross-frame (compartir con audio)
        new_weight: Peso de la observación nueva en el smoothing
    """

    def __init__(
        self,
        confidence_threshold: Optional[float] = DEFAULT_CONFIDENCE_THRESHOLD,
        matcher: Optional[MatchingStrategy] = None,
        new_weight: float = DEFAULT_NEW_WEIGHT,
    ):
        self.confidence_threshold = confidence_threshold
        self.matcher = matcher or LabelIoUMatcher()
        self.new_weight = new_weight

    def run(
        self,
        raw_candidates: Sequence[Any],
        previous: Sequence[DetectedObject],
    ) -> PipelineResult:
        objects = ingest(raw_candidates)
        if self.confidence_threshold is not None:
            objects = filter_by_confidence(objects, self.confidence_threshold)
        ingested_count = len(objects)

        objects = filter_out_of_frame(objects)
        objects = deduplicate(objects)
        sanitized_count = len(objects)

        stabilized, matched = stabilize_with_stats(
            objects, previous, matcher=self.matcher, new_weight=self.new_weight
        )

        return PipelineResult(
            objects=tuple(stabilized),
            raw_count=len(raw_candidates),
            ingested_count=ingested_count,
            sanitized_count=sanitized_count,
            matched_count=matched,
        )
