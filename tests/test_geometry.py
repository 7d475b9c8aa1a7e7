import numpy as np
import pytest

from kcfdsst.geometry import (
    BoundingBox,
    clamp_after_motion,
    clamp_before_detection,
    extract_patch,
    subwindow,
)


@pytest.fixture
def image():
    return np.arange(50 * 60, dtype=np.int32).reshape(50, 60)


class TestBoundingBox:
    def test_center_and_recenter(self):
        box = BoundingBox(10, 20, 40, 30)
        assert box.center == (30.0, 35.0)
        box.recenter(0, 0)
        assert box.as_tuple() == (-20.0, -15.0, 40, 30)

    def test_from_tuple(self):
        box = BoundingBox.from_any((1, 2, 3, 4))
        assert isinstance(box.x, float)
        assert box.as_tuple() == (1.0, 2.0, 3.0, 4.0)

    def test_intersect_partially_outside(self):
        box = BoundingBox(-5, 50, 40, 40).intersect(200, 200)
        assert box.as_tuple() == (0.0, 50.0, 35.0, 40.0)

    def test_intersect_disjoint_is_empty(self):
        box = BoundingBox(300, 300, 40, 40).intersect(200, 200)
        assert box.width == 0 and box.height == 0


class TestClamps:
    def test_before_detection_pulls_back_left_and_top(self):
        box = BoundingBox(-50, -70, 40, 40)
        clamp_before_detection(box, 200, 100)
        assert box.x == -39 and box.y == -39
        assert box.x + box.width > 0 and box.y + box.height > 0

    def test_before_detection_pulls_back_right_and_bottom(self):
        box = BoundingBox(250, 150, 40, 40)
        clamp_before_detection(box, 200, 100)
        assert box.x == 198 and box.y == 98

    def test_after_motion(self):
        box = BoundingBox(-45, 120, 40, 40)
        clamp_after_motion(box, 200, 100)
        assert box.x == -38
        assert box.y == 99

    def test_inside_box_untouched(self):
        box = BoundingBox(50, 30, 40, 40)
        clamp_before_detection(box, 200, 100)
        clamp_after_motion(box, 200, 100)
        assert box.as_tuple() == (50, 30, 40, 40)


class TestSubwindow:
    def test_inside_is_plain_crop(self, image):
        np.testing.assert_array_equal(subwindow(image, (5, 6, 10, 8)), image[6:14, 5:15])

    def test_replicates_edges(self, image):
        patch = subwindow(image, (-3, -2, 6, 5))
        assert patch.shape == (5, 6)
        # Top-left corner area repeats image[0, 0]
        assert np.all(patch[:3, :4] == image[0, 0])
        np.testing.assert_array_equal(patch[2:, 3:], image[0:3, 0:3])

    def test_fully_outside_keeps_shape(self, image):
        patch = subwindow(image, (100, 100, 7, 4))
        assert patch.shape == (4, 7)
        assert np.all(patch == image[-1, -1])

    def test_colour_image(self):
        img = np.zeros((10, 10, 3), np.uint8)
        assert subwindow(img, (-2, -2, 14, 14)).shape == (14, 14, 3)


class TestExtractPatch:
    def test_centered_crop(self, image):
        patch = extract_patch(image, 30, 25, 10, 10)
        assert patch.shape == (9, 9)
        assert patch[0, 0] == image[20, 25]

    def test_clipped_to_image(self, image):
        patch = extract_patch(image, 2, 2, 20, 20)
        assert patch.shape[0] <= 50 and patch.shape[1] <= 60
        assert patch[0, 0] == image[0, 0]

    def test_off_frame_is_empty(self, image):
        patch = extract_patch(image, -100, -100, 20, 20)
        assert patch.shape[0] == 0 or patch.shape[1] == 0
