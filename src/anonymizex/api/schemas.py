"""Pydantic request/response schemas for the AnonymizeX API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from anonymizex.imaging.regions import DetectionRegion, Point, unwrap_annotations


class Vertex(BaseModel):
    """A polygon vertex; omitted coordinates mean 0."""

    model_config = ConfigDict(allow_inf_nan=False)

    x: float | None = None
    y: float | None = None

    def to_point(self) -> Point:
        return Point(x=self.x or 0, y=self.y or 0)


class BoundingPoly(BaseModel):
    """Polygon as returned by the face detector."""

    vertices: list[Vertex] = Field(default_factory=list)

    def to_points(self) -> tuple[Point, ...]:
        return tuple(vertex.to_point() for vertex in self.vertices)


class FaceAnnotation(BaseModel):
    """One face from the detector, in its camelCase wire format."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    bounding_poly: BoundingPoly | None = Field(default=None, alias="boundingPoly")
    fd_bounding_poly: BoundingPoly | None = Field(default=None, alias="fdBoundingPoly")
    detection_confidence: float | None = Field(default=None, alias="detectionConfidence")
    confidence: float | None = None
    landmarks: list[Any] = Field(default_factory=list)
    roll_angle: float | None = Field(default=None, alias="rollAngle")
    pan_angle: float | None = Field(default=None, alias="panAngle")
    tilt_angle: float | None = Field(default=None, alias="tiltAngle")

    def to_region(self, index: int) -> DetectionRegion:
        return DetectionRegion(
            id=index,
            tight=self.fd_bounding_poly.to_points() if self.fd_bounding_poly else None,
            loose=self.bounding_poly.to_points() if self.bounding_poly else None,
            confidence=self.detection_confidence if self.detection_confidence is not None else self.confidence,
            landmarks=tuple(self.landmarks),
            roll_angle=self.roll_angle,
            pan_angle=self.pan_angle,
            tilt_angle=self.tilt_angle,
        )


_ANNOTATIONS_ADAPTER: TypeAdapter[list[FaceAnnotation]] = TypeAdapter(list[FaceAnnotation])


def regions_from_annotations(payload: Any) -> list[DetectionRegion]:
    """Validate detector output and convert it to regions, ids by sequence index.

    ``payload`` may be a list of faces or a full detection response.

    Raises:
        pydantic.ValidationError: If the structure does not match the wire format.
    """
    annotations = _ANNOTATIONS_ADAPTER.validate_python(unwrap_annotations(payload))
    return [annotation.to_region(index) for index, annotation in enumerate(annotations)]


class ImageInfoResponse(BaseModel):
    """Dimensions of an uploaded image."""

    width: int
    height: int
    format: str | None = None
    mode: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    concurrent_requests: int
    queue_depth: int


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
