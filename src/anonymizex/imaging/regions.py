"""Detection regions as consumed by the compositor.

Detections arrive already resolved to polygons. Only the polygons are used;
confidence, landmarks and pose angles are carried along untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Point:
    """A polygon vertex. A coordinate the detector omitted is 0."""

    x: float = 0
    y: float = 0


@dataclass(frozen=True)
class DetectionRegion:
    """One detected face.

    ``tight`` is the face-boundary polygon and is preferred; ``loose`` is the
    larger overall box used when the tight one is missing or degenerate.
    """

    id: int
    tight: tuple[Point, ...] | None = None
    loose: tuple[Point, ...] | None = None
    confidence: float | None = None
    landmarks: tuple[Any, ...] = field(default=(), compare=False)
    roll_angle: float | None = None
    pan_angle: float | None = None
    tilt_angle: float | None = None


def unwrap_annotations(payload: Any) -> Any:
    """Return the face list from either a bare list or a full detector response.

    Accepts ``{"responses": [{"faceAnnotations": [...]}]}``,
    ``{"faceAnnotations": [...]}``, ``{"faces": [...]}`` or a list. Anything
    else is returned unchanged for the caller's validation to reject.
    """
    if isinstance(payload, dict):
        responses = payload.get("responses")
        if isinstance(responses, list):
            first = responses[0] if responses else {}
            return first.get("faceAnnotations", []) if isinstance(first, dict) else first
        for key in ("faceAnnotations", "faces"):
            if key in payload:
                return payload[key]
    return payload
