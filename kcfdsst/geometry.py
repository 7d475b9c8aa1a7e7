"""Box geometry, frame clamping and patch extraction."""
from dataclasses import dataclass
from typing import Tuple

import numpy as np


class InvalidBoundingBoxError(ValueError):
    """Raised when a tracker is initialised with an unusable box."""


@dataclass
class BoundingBox:
    """
    Axis-aligned box in image pixel coordinates.
    (x, y) = top-left corner, floats so sub-pixel motion accumulates.
    """
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_any(cls, box) -> "BoundingBox":
        if isinstance(box, BoundingBox):
            return cls(box.x, box.y, box.width, box.height)
        x, y, w, h = map(float, box)
        return cls(x, y, w, h)

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0

    def recenter(self, cx: float, cy: float) -> None:
        self.x = cx - self.width / 2.0
        self.y = cy - self.height / 2.0

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    def intersect(self, width: int, height: int) -> "BoundingBox":
        """Return the part of the box that lies inside a ``width`` x ``height`` frame."""
        x1 = max(self.x, 0.0)
        y1 = max(self.y, 0.0)
        x2 = min(self.x + self.width, float(width))
        y2 = min(self.y + self.height, float(height))
        return BoundingBox(x1, y1, max(0.0, x2 - x1), max(0.0, y2 - y1))


# ---------------------- Frame clamps ----------------------
def clamp_before_detection(box, frame_w, frame_h):
    """Pull a box that drifted off-frame back so at least one pixel overlaps."""
    if box.x + box.width <= 0:
        box.x = -box.width + 1
    if box.y + box.height <= 0:
        box.y = -box.height + 1
    if box.x >= frame_w - 1:
        box.x = frame_w - 2
    if box.y >= frame_h - 1:
        box.y = frame_h - 2


def clamp_after_motion(box, frame_w, frame_h):
    if box.x >= frame_w - 1:
        box.x = frame_w - 1
    if box.y >= frame_h - 1:
        box.y = frame_h - 1
    if box.x + box.width <= 0:
        box.x = -box.width + 2
    if box.y + box.height <= 0:
        box.y = -box.height + 2


# ---------------------- Patch extraction ----------------------
def subwindow(image, window):
    """
    Crop ``window`` = (x, y, w, h) from ``image``.

    Pixels outside the image are filled by replicating the nearest edge
    pixel, so the result always has shape (h, w[, c]) even when the window
    lies completely off-frame.
    """
    x, y, w, h = (int(v) for v in window)
    w = max(w, 1)
    h = max(h, 1)
    img_h, img_w = image.shape[:2]
    xs = np.clip(np.arange(x, x + w), 0, img_w - 1)
    ys = np.clip(np.arange(y, y + h), 0, img_h - 1)
    return image[ys[:, None], xs[None, :]]


def _cut_outside(value, limit):
    if value < 0:
        return 0
    if value > limit - 1:
        return limit - 1
    return int(value)


def extract_patch(image, cx, cy, patch_width, patch_height):
    """
    Crop a patch centred on (cx, cy), clipped to the image bounds.

    Unlike :func:`subwindow` nothing is replicated; a patch that falls
    outside the frame comes back with zero width or height.
    """
    img_h, img_w = image.shape[:2]
    xs_s = _cut_outside(np.floor(cx) - np.floor(patch_width / 2), img_w)
    xs_e = _cut_outside(np.floor(cx + patch_width - 1) - np.floor(patch_width / 2), img_w)
    ys_s = _cut_outside(np.floor(cy) - np.floor(patch_height / 2), img_h)
    ys_e = _cut_outside(np.floor(cy + patch_height - 1) - np.floor(patch_height / 2), img_h)
    return image[ys_s:ys_e, xs_s:xs_e]
