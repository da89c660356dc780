"""Tests for detector payload parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from anonymizex.api.schemas import FaceAnnotation, regions_from_annotations
from anonymizex.imaging.regions import Point, unwrap_annotations

_FACE = {
    "boundingPoly": {"vertices": [{"x": 5, "y": 2}, {"x": 60, "y": 2}, {"x": 60, "y": 70}, {"x": 5, "y": 70}]},
    "fdBoundingPoly": {"vertices": [{"x": 12, "y": 20}, {"x": 50}, {"x": 50, "y": 60}, {"y": 60}]},
    "detectionConfidence": 0.93,
    "landmarks": [{"type": "LEFT_EYE", "position": {"x": 20, "y": 30, "z": 0}}],
    "rollAngle": 1.5,
    "panAngle": -3.0,
    "tiltAngle": 0.25,
    "joyLikelihood": "VERY_UNLIKELY",
}


class TestFaceAnnotation:
    def test_to_region_maps_polygons(self) -> None:
        region = FaceAnnotation.model_validate(_FACE).to_region(7)
        assert region.id == 7
        assert region.tight == (Point(12, 20), Point(50, 0), Point(50, 60), Point(0, 60))
        assert region.loose is not None
        assert len(region.loose) == 4

    def test_passthrough_fields(self) -> None:
        region = FaceAnnotation.model_validate(_FACE).to_region(0)
        assert region.confidence == pytest.approx(0.93)
        assert region.roll_angle == pytest.approx(1.5)
        assert region.pan_angle == pytest.approx(-3.0)
        assert region.tilt_angle == pytest.approx(0.25)
        assert len(region.landmarks) == 1

    def test_flattened_confidence_key(self) -> None:
        region = FaceAnnotation.model_validate({"confidence": 0.5}).to_region(0)
        assert region.confidence == pytest.approx(0.5)
        assert region.tight is None
        assert region.loose is None


class TestRegionsFromAnnotations:
    def test_list_payload_indexes_by_position(self) -> None:
        regions = regions_from_annotations([_FACE, {}, _FACE])
        assert [region.id for region in regions] == [0, 1, 2]

    def test_detection_response_envelope(self) -> None:
        payload = {"responses": [{"faceAnnotations": [_FACE, _FACE]}]}
        assert len(regions_from_annotations(payload)) == 2

    def test_empty_response(self) -> None:
        assert regions_from_annotations({"responses": [{}]}) == []
        assert regions_from_annotations({"responses": []}) == []

    def test_faces_key(self) -> None:
        assert len(regions_from_annotations({"faces": [_FACE]})) == 1

    def test_malformed_vertices_rejected(self) -> None:
        with pytest.raises(ValidationError):
            regions_from_annotations([{"boundingPoly": {"vertices": "nope"}}])

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_vertices_rejected(self, value: float) -> None:
        with pytest.raises(ValidationError):
            regions_from_annotations([{"boundingPoly": {"vertices": [{"x": value, "y": 0}]}}])

    def test_non_list_rejected(self) -> None:
        with pytest.raises(ValidationError):
            regions_from_annotations("not faces")


class TestUnwrapAnnotations:
    def test_passthrough_list(self) -> None:
        faces = [{"a": 1}]
        assert unwrap_annotations(faces) is faces

    def test_face_annotations_key(self) -> None:
        assert unwrap_annotations({"faceAnnotations": [1, 2]}) == [1, 2]
