"""
Detection Core - Geometry, Quality, Sanitizer, Stabilization, Priority
"""
from .geometry import (
    Distance,
    classify_distance,
    estimate_distance_meters,
    intersection_over_union,
    is_object_nearby,
)
from .models import BoundingBox, DetectedObject, new_object_id
from .quality import filter_by_confidence, ingest, is_structurally_valid
from .sanitizer import deduplicate, filter_out_of_frame
from .stabilization import LabelIoUMatcher, stabilize
from .priority import sort_by_priority
from .pipeline import DetectionPipeline, PipelineResult
from .source import DetectionSource, MockDetectionSource

__all__ = [
    "Distance",
    "BoundingBox",
    "DetectedObject",
    "new_object_id",
    "intersection_over_union",
    "classify_distance",
    "estimate_distance_meters",
    "is_object_nearby",
    "filter_by_confidence",
    "is_structurally_valid",
    "ingest",
    "filter_out_of_frame",
    "deduplicate",
    "LabelIoUMatcher",
    "stabilize",
    "sort_by_priority",
    "DetectionPipeline",
    "PipelineResult",
    "DetectionSource",
    "MockDetectionSource",
]
