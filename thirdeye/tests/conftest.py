"""
Fixtures compartidos.
"""
import pytest

from thirdeye.detection.models import BoundingBox, DetectedObject


@pytest.fixture
def make_object():
    """Factory de DetectedObject: make_object(label, x, y, w, h, confidence)."""
    def _make(label="chair", x=0.1, y=0.1, width=0.2, height=0.2, confidence=0.9, object_id=None):
        kwargs = {}
        if object_id is not None:
            kwargs["id"] = object_id
        return DetectedObject(
            label=label,
            confidence=confidence,
            bounding_box=BoundingBox(x=x, y=y, width=width, height=height),
            **kwargs,
        )
    return _make


@pytest.fixture
def raw_record():
    """Factory de registros crudos (forma de detector)."""
    def _make(label="chair", x=0.1, y=0.1, width=0.2, height=0.2, confidence=0.9, **extra):
        record = {
            "id": f"{label}-raw",
            "label": label,
            "confidence": confidence,
            "boundingBox": {"x": x, "y": y, "width": width, "height": height},
        }
        record.update(extra)
        return record
    return _make
