"""Feature extraction: gray, HOG and HOG + colour-attribute maps over a template window."""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from kcfdsst.config import TrackerConfig
from kcfdsst.fhog import compute_fhog
from kcfdsst.geometry import BoundingBox, subwindow

logger = logging.getLogger(__name__)

# Reference colours in CIE Lab (L in [0, 100], a/b signed).
COLOR_PALETTE = np.array([
    [0.00, 0.00, 0.00], [45.37, -4.33, -33.43], [43.08, 17.51, 37.53],
    [53.59, 0.00, 0.00], [47.31, -45.33, 41.35], [65.75, 71.45, 63.32],
    [76.08, 22.25, -21.46], [32.30, 79.19, -107.86], [52.23, 75.43, 37.36],
    [100.00, 0.00, 0.00], [92.13, -16.53, 93.35]
], dtype=np.float32)
COLOR_PALETTE.setflags(write=False)


@dataclass(frozen=True)
class FeatureShape:
    height: int
    width: int
    channels: int

    @classmethod
    def of(cls, features: np.ndarray) -> "FeatureShape":
        channels = features.shape[2] if features.ndim == 3 else 1
        return cls(features.shape[0], features.shape[1], channels)

    @property
    def size(self) -> int:
        return self.height * self.width * self.channels


def cosine_taper(n: int) -> np.ndarray:
    if n < 2:
        return np.ones(n)
    i = np.arange(n)
    return 0.5 * (1 - np.cos(2 * np.pi * i / (n - 1)))


def hanning_window(shape: FeatureShape) -> np.ndarray:
    """
    Separable cosine window for a feature map of ``shape``.

    Single-channel shapes get a 2-D window; multi-channel shapes get the same
    2-D window repeated along a trailing channel axis.
    """
    hann2d = np.outer(cosine_taper(shape.height), cosine_taper(shape.width))
    if shape.channels == 1:
        return hann2d
    return np.repeat(hann2d[:, :, np.newaxis], shape.channels, axis=2)


def _as_bgr(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image


def _as_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image


def color_attributes(patch: np.ndarray, cell_size: int,
                     palette: np.ndarray = COLOR_PALETTE) -> np.ndarray:
    """
    Soft colour histogram per cell.

    Every pixel votes ``1 / cell_size**2`` for its nearest palette colour.
    The outer ring of cells is skipped so the grid lines up with the
    trimmed HOG map.
    """
    rows, cols = patch.shape[:2]
    hc = max(rows // cell_size - 2, 0)
    wc = max(cols // cell_size - 2, 0)

    bgr = _as_bgr(patch).astype(np.float32)
    if patch.dtype == np.uint8:
        bgr /= 255.0
    lab = cv2.cvtColor(bgr, cv2.COLOR_BGR2Lab)
    inner = lab[cell_size:cell_size + hc * cell_size, cell_size:cell_size + wc * cell_size]

    distances = np.sum((inner[:, :, np.newaxis, :] - palette[np.newaxis, np.newaxis, :, :]) ** 2, axis=3)
    nearest = np.argmin(distances, axis=2)
    votes = (nearest[:, :, np.newaxis] == np.arange(len(palette))).astype(np.float32)
    votes = votes.reshape(hc, cell_size, wc, cell_size, len(palette))
    return votes.sum(axis=(1, 3)) / float(cell_size * cell_size)


class FeatureExtractor:
    """
    Turns an image region around the target into a windowed feature map.

    The template geometry (``template_size`` in template pixels and
    ``scale`` from template pixels to image pixels) is fixed by the first
    extraction for a box and reused until the next re-initialisation.
    """

    def __init__(self, config: TrackerConfig):
        self.config = config
        self.template_size: Tuple[int, int] = (0, 0)  # (width, height)
        self.scale = 1.0
        self._window: Optional[np.ndarray] = None
        self._window_shape: Optional[FeatureShape] = None

    def fit_template(self, box: BoundingBox) -> None:
        cfg = self.config
        padded_w = max(int(box.width * cfg.padding), 1)
        padded_h = max(int(box.height * cfg.padding), 1)

        if cfg.template_size > 1:
            # Fit the largest dimension to the template size
            if padded_w >= padded_h:
                self.scale = padded_w / float(cfg.template_size)
            else:
                self.scale = padded_h / float(cfg.template_size)
            tmpl_w = int(padded_w / self.scale)
            tmpl_h = int(padded_h / self.scale)
        else:
            tmpl_w, tmpl_h = padded_w, padded_h
            self.scale = 1.0

        if cfg.hog:
            # Whole number of cells, even, plus the border ring normalisation eats
            step = 2 * cfg.cell_size
            tmpl_w = tmpl_w // step * step + step
            tmpl_h = tmpl_h // step * step + step
            # At least 3 cells must survive the trimmed border ring
            min_side = 5 * cfg.cell_size
            min_side += min_side % 2
        else:
            tmpl_w = tmpl_w // 2 * 2
            tmpl_h = tmpl_h // 2 * 2
            min_side = 2
        tmpl_w = max(tmpl_w, min_side)
        tmpl_h = max(tmpl_h, min_side)

        self.template_size = (tmpl_w, tmpl_h)
        logger.debug("Template %dx%d px, scale %.4f", tmpl_w, tmpl_h, self.scale)

    def extract(self, image: np.ndarray, box: BoundingBox, current_scale_factor: float = 1.0,
                init: bool = False, scale_adjust: float = 1.0) -> Tuple[np.ndarray, FeatureShape]:
        """Return ``(features, shape)`` for the region centred on ``box``."""
        cfg = self.config
        if init:
            self.fit_template(box)

        tmpl_w, tmpl_h = self.template_size
        cx, cy = box.center
        roi_w = int(scale_adjust * self.scale * tmpl_w * current_scale_factor)
        roi_h = int(scale_adjust * self.scale * tmpl_h * current_scale_factor)
        roi_x = int(cx - roi_w / 2)
        roi_y = int(cy - roi_h / 2)

        z = subwindow(image, (roi_x, roi_y, roi_w, roi_h))
        if z.shape[1] != tmpl_w or z.shape[0] != tmpl_h:
            z = cv2.resize(z, (tmpl_w, tmpl_h))

        if cfg.hog:
            features = compute_fhog(z, cfg.cell_size, cfg.truncation).map
            if cfg.lab:
                features = np.dstack((features, color_attributes(z, cfg.cell_size)))
        else:
            features = _as_gray(z).astype(np.float64) / 255.0 - 0.5

        shape = FeatureShape.of(features)
        if self._window is None or self._window_shape != shape:
            self._window = hanning_window(shape)
            self._window_shape = shape

        return features * self._window, shape
