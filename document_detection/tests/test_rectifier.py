"""
Tests for perspective rectification
"""

import cv2
import numpy as np
import pytest

from document_detection.errors import DegenerateQuad
from document_detection.rectifier import compute_transform, four_point_transform, warp


@pytest.fixture
def frame():
    """200x100 frame with a bright 60x40 block at (10, 20)"""
    image = np.zeros((100, 200, 3), dtype=np.uint8)
    image[20:61, 10:71] = 200
    return image


class TestComputeTransform:
    """Tests for compute_transform"""

    def test_maps_corners_to_rectangle(self):
        """Ordered corners map onto (0,0), (w-1,0), (w-1,h-1), (0,h-1)"""
        ordered = np.array([[12, 20], [80, 8], [95, 70], [5, 60]], dtype=np.float32)
        matrix, (width, height) = compute_transform(ordered)

        assert matrix.shape == (3, 3)
        mapped = cv2.perspectiveTransform(ordered.reshape(-1, 1, 2), matrix).reshape(4, 2)
        expected = [[0, 0], [width - 1, 0], [width - 1, height - 1], [0, height - 1]]
        np.testing.assert_allclose(mapped, expected, atol=1e-3)

    def test_size_from_corners(self):
        ordered = np.array([[10, 20], [70, 20], [70, 60], [10, 60]], dtype=np.float32)
        _, size = compute_transform(ordered)
        assert size == (60, 40)

    def test_explicit_size(self):
        ordered = np.array([[10, 20], [70, 20], [70, 60], [10, 60]], dtype=np.float32)
        _, size = compute_transform(ordered, dest_size=(30, 20))
        assert size == (30, 20)

    def test_degenerate_quad(self):
        """All corners on one point give an empty size"""
        with pytest.raises(DegenerateQuad):
            compute_transform(np.full((4, 2), 5, dtype=np.float32))

    def test_degenerate_explicit_size(self):
        ordered = np.array([[10, 20], [70, 20], [70, 60], [10, 60]], dtype=np.float32)
        with pytest.raises(DegenerateQuad):
            compute_transform(ordered, dest_size=(0, 10))


class TestWarp:
    """Tests for warp and four_point_transform"""

    def test_output_size(self, frame):
        ordered = np.array([[10, 20], [70, 20], [70, 60], [10, 60]], dtype=np.float32)
        matrix, size = compute_transform(ordered)

        warped = warp(frame, matrix, size)
        assert warped.shape == (40, 60, 3)

    def test_content(self, frame):
        """Rectified block keeps its brightness"""
        corners = np.array([[10, 20], [70, 20], [70, 60], [10, 60]], dtype=np.float32)
        warped = four_point_transform(frame, corners)
        assert warped[20, 30].tolist() == [200, 200, 200]
        assert warped.mean() > 190

    def test_corner_order_irrelevant(self, frame):
        corners = np.array([[10, 20], [70, 20], [70, 60], [10, 60]], dtype=np.float32)
        shuffled = corners[[2, 0, 3, 1]]
        np.testing.assert_array_equal(
            four_point_transform(frame, shuffled),
            four_point_transform(frame, corners)
        )

    def test_empty_size(self, frame):
        with pytest.raises(DegenerateQuad):
            warp(frame, np.eye(3), (0, 5))

    def test_four_point_degenerate(self, frame):
        with pytest.raises(DegenerateQuad):
            four_point_transform(frame, np.full((4, 2), 3, dtype=np.float32))
