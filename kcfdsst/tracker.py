"""
Single-target tracker combining a kernelized correlation filter (KCF) for
translation with a DSST-style scale filter.

Typical use::

    tracker = KCFTracker(hog=True, fixed_window=True, multiscale=True, lab=True)
    tracker.init((x, y, w, h), first_frame)
    for frame in frames:
        x, y, w, h = tracker.update(frame).as_tuple()
"""
import logging
from typing import Optional

import numpy as np

from kcfdsst.config import TrackerConfig
from kcfdsst.correlation import CorrelationFilter
from kcfdsst.features import FeatureExtractor
from kcfdsst.geometry import (
    BoundingBox,
    InvalidBoundingBoxError,
    clamp_after_motion,
    clamp_before_detection,
)
from kcfdsst.scale import ScaleEstimator

logger = logging.getLogger(__name__)


class KCFTracker:
    """
    Tracks one box through a frame sequence.

    The tracker is *uninitialised* until :meth:`init` succeeds and then
    stays in the tracking state for as long as :meth:`update` is called.
    ``update`` never fails on a weak detection; the best box it finds is
    accepted as the new state and the peak response is left in
    :attr:`peak_value` for callers that want to judge confidence.
    """

    def __init__(self, hog: bool = True, fixed_window: bool = True, multiscale: bool = True,
                 lab: bool = True, config: Optional[TrackerConfig] = None):
        # Parameters may still be tweaked on self.config before init()
        self.config = config if config is not None else TrackerConfig.for_modes(
            hog=hog, fixed_window=fixed_window, multiscale=multiscale, lab=lab)

        self.features = FeatureExtractor(self.config)
        self.filter: Optional[CorrelationFilter] = None
        self.scale_estimator: Optional[ScaleEstimator] = None

        self._box: Optional[BoundingBox] = None
        self._current_scale_factor = 1.0
        self._peak_value = 0.0

    ### ----------------------------------------------------
    ### SECTION A: STATE
    ### ----------------------------------------------------
    @property
    def initialized(self) -> bool:
        return self.filter is not None

    @property
    def box(self) -> Optional[BoundingBox]:
        return None if self._box is None else BoundingBox.from_any(self._box)

    @property
    def current_scale_factor(self) -> float:
        return self._current_scale_factor

    @property
    def peak_value(self) -> float:
        return self._peak_value

    ### ----------------------------------------------------
    ### SECTION B: INIT
    ### ----------------------------------------------------
    def init(self, box, image: np.ndarray) -> None:
        """
        Start tracking ``box`` = (x, y, w, h) in ``image``.

        Raises InvalidBoundingBoxError for negative sizes, and for boxes
        that have no overlap with the frame.
        """
        box = BoundingBox.from_any(box)
        if box.width < 0 or box.height < 0:
            raise InvalidBoundingBoxError(
                f"Box size must be non-negative, got {box.width}x{box.height}")

        img_h, img_w = image.shape[:2]
        box = box.intersect(img_w, img_h)
        if box.width <= 0 or box.height <= 0:
            raise InvalidBoundingBoxError("Box does not overlap the frame")

        self._box = box
        self._current_scale_factor = 1.0
        self._peak_value = 0.0

        tmpl, shape = self.features.extract(image, self._box, self._current_scale_factor, init=True)
        self.filter = CorrelationFilter(self.config, shape)

        if self.config.multiscale:
            self.scale_estimator = ScaleEstimator(self.config)
            self.scale_estimator.init(self._box, image)
            self._resize_box()
        else:
            self.scale_estimator = None

        self.filter.train(tmpl, 1.0)
        logger.debug("Initialised on box %s, features %s", self._box.as_tuple(), shape)

    def init_from_points(self, pt1, pt2, image):
        """Start tracking the box spanned by two opposite corners."""
        x = min(pt1[0], pt2[0])
        y = min(pt1[1], pt2[1])
        w = abs(pt2[0] - pt1[0])
        h = abs(pt2[1] - pt1[1])
        self.init((x, y, w, h), image)

    ### ----------------------------------------------------
    ### SECTION C: UPDATE
    ### ----------------------------------------------------
    def _resize_box(self):
        """Rebuild width/height from the reference size, keeping the centre."""
        cx, cy = self._box.center
        self._box.width = self.scale_estimator.base_width * self._current_scale_factor
        self._box.height = self.scale_estimator.base_height * self._current_scale_factor
        self._box.recenter(cx, cy)

    def update(self, image: np.ndarray) -> BoundingBox:
        """Locate the target in ``image`` and adapt the models; returns the new box."""
        if not self.initialized:
            raise RuntimeError("KCFTracker.update() called before init()")

        box = self._box
        img_h, img_w = image.shape[:2]
        clamp_before_detection(box, img_w, img_h)

        cx, cy = box.center
        x, _ = self.features.extract(image, box, self._current_scale_factor, scale_adjust=1.0)
        (dx, dy), self._peak_value = self.filter.detect(self.filter.template, x)

        # Cells -> template pixels -> image pixels
        step = self.config.cell_size * self.features.scale * self._current_scale_factor
        box.x = cx - box.width / 2.0 + dx * step
        box.y = cy - box.height / 2.0 + dy * step

        if self.scale_estimator is not None:
            clamp_after_motion(box, img_w, img_h)

            best = self.scale_estimator.detect_scale(image, box.center, self._current_scale_factor)
            factor = self._current_scale_factor * self.scale_estimator.scale_factors[best]
            self._current_scale_factor = float(self.scale_estimator.clamp(factor))

            self.scale_estimator.train_scale(image, box.center, self._current_scale_factor)
            self._resize_box()

        clamp_after_motion(box, img_w, img_h)

        x, _ = self.features.extract(image, box, self._current_scale_factor)
        self.filter.train(x, self.config.interp_factor)

        return self.box
