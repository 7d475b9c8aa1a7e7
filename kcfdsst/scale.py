"""DSST-style scale estimation with a 1-D correlation filter over a bank of rescaled patches."""
import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from kcfdsst import spectral
from kcfdsst.config import TrackerConfig
from kcfdsst.features import cosine_taper
from kcfdsst.fhog import compute_fhog
from kcfdsst.geometry import BoundingBox, extract_patch

logger = logging.getLogger(__name__)


class ScaleEstimator:
    """
    Owns the scale filter state (``sf_num`` / ``sf_den``), the table of
    candidate scale multipliers and the reference size the multipliers are
    applied to. The running scale factor itself belongs to the caller and
    is passed into every call.
    """

    def __init__(self, config: TrackerConfig):
        self.config = config
        self.base_width = 0.0
        self.base_height = 0.0
        self.model_size: Tuple[int, int] = (0, 0)  # (width, height)
        self.scale_factors: Optional[np.ndarray] = None
        self.window: Optional[np.ndarray] = None
        self.ysf: Optional[np.ndarray] = None
        self.sf_num: Optional[np.ndarray] = None
        self.sf_den: Optional[np.ndarray] = None
        self.min_scale_factor = 0.0
        self.max_scale_factor = np.inf

    @property
    def center_index(self) -> int:
        return int(np.ceil(self.config.n_scales / 2.0)) - 1

    ### ----------------------------------------------------
    ### SECTION A: INIT
    ### ----------------------------------------------------
    def _gaussian_target(self) -> np.ndarray:
        n = self.config.n_scales
        scale_sigma = n / np.sqrt(n) * self.config.scale_sigma_factor
        ceil_s = np.ceil(n / 2.0)
        i = np.arange(n)
        res = np.exp(-0.5 * (i + 1 - ceil_s) ** 2 / (scale_sigma * scale_sigma))
        return np.fft.fft(res)

    def init(self, box: BoundingBox, image: np.ndarray) -> None:
        cfg = self.config
        self.base_width = box.width
        self.base_height = box.height

        self.ysf = self._gaussian_target()
        self.window = cosine_taper(cfg.n_scales)

        ceil_s = np.ceil(cfg.n_scales / 2.0)
        self.scale_factors = np.power(cfg.scale_step, ceil_s - np.arange(cfg.n_scales) - 1)
        self.scale_factors.setflags(write=False)

        # Patches are compressed to at most scale_max_area pixels
        scale_model_factor = 1.0
        if self.base_width * self.base_height > cfg.scale_max_area:
            scale_model_factor = np.sqrt(cfg.scale_max_area / (self.base_width * self.base_height))
        self.model_size = (max(int(self.base_width * scale_model_factor), 1),
                           max(int(self.base_height * scale_model_factor), 1))

        img_h, img_w = image.shape[:2]
        log_step = np.log(cfg.scale_step)
        self.min_scale_factor = float(np.power(cfg.scale_step, np.ceil(
            np.log(max(5.0 / self.base_width, 5.0 / self.base_height) * (1 + cfg.scale_padding)) / log_step)))
        self.max_scale_factor = float(np.power(cfg.scale_step, np.floor(
            np.log(min(img_h / self.base_height, img_w / self.base_width)) / log_step)))
        logger.debug("Scale model %s, bounds [%.4f, %.4f]",
                     self.model_size, self.min_scale_factor, self.max_scale_factor)

        self.sf_num = None
        self.sf_den = None
        self.train_scale(image, box.center, 1.0, initial=True)

    def clamp(self, scale_factor):
        if scale_factor < self.min_scale_factor:
            return self.min_scale_factor
        if self.config.clamp_max_scale and scale_factor > self.max_scale_factor:
            return self.max_scale_factor
        return scale_factor

    ### ----------------------------------------------------
    ### SECTION B: SAMPLES
    ### ----------------------------------------------------
    def _scale_sample(self, image, center, current_scale_factor):
        """
        Feature matrix with one column per candidate scale, transformed
        along the scale axis. ``None`` when no usable patch was found.
        """
        cfg = self.config
        cx, cy = center
        model_w, model_h = self.model_size
        columns = None

        for i, factor in enumerate(self.scale_factors):
            patch_w = self.base_width * factor * current_scale_factor
            patch_h = self.base_height * factor * current_scale_factor
            patch = extract_patch(image, cx, cy, patch_w, patch_h)
            if patch.shape[0] <= 0 or patch.shape[1] <= 0:
                logger.debug("Skipping empty scale patch %d (%.1fx%.1f)", i, patch_w, patch_h)
                continue

            interpolation = cv2.INTER_LINEAR if model_w > patch.shape[1] else cv2.INTER_AREA
            resized = cv2.resize(patch, (model_w, model_h), interpolation=interpolation)
            feature = compute_fhog(resized, cfg.cell_size, cfg.truncation).map.ravel()
            if feature.size == 0:
                return None

            if columns is None:
                columns = np.zeros((feature.size, cfg.n_scales), dtype=np.float64)
            columns[:, i] = feature * self.window[i]

        if columns is None:
            return None
        return spectral.fft_rows(columns)

    ### ----------------------------------------------------
    ### SECTION C: TRAIN / DETECT
    ### ----------------------------------------------------
    def train_scale(self, image, center, current_scale_factor, initial=False):
        xsf = self._scale_sample(image, center, current_scale_factor)
        if xsf is None:
            return

        new_num = spectral.complex_multiply(self.ysf, xsf, conj_b=True)
        new_den = np.sum(spectral.real(spectral.complex_multiply(xsf, xsf, conj_b=True)), axis=0)

        if initial or self.sf_num is None:
            self.sf_num = new_num
            self.sf_den = new_den
        else:
            lr = self.config.scale_lr
            self.sf_num = (1 - lr) * self.sf_num + lr * new_num
            self.sf_den = (1 - lr) * self.sf_den + lr * new_den

    def detect_scale(self, image, center, current_scale_factor):
        """Index into ``scale_factors`` of the best-responding scale."""
        if self.sf_num is None:
            return self.center_index
        xsf = self._scale_sample(image, center, current_scale_factor)
        if xsf is None:
            return self.center_index

        add_temp = np.sum(spectral.complex_multiply(self.sf_num, xsf), axis=0)
        response = spectral.ifft_real(
            spectral.complex_divide(add_temp, self.sf_den + self.config.scale_lambda))
        best = self.pick_scale(response)
        logger.debug("Scale index %d (factor %.4f)", best, self.scale_factors[best])
        return best

    def pick_scale(self, response):
        """Arg-max of ``response``; the centre index wins unless it is clearly beaten."""
        center = self.center_index
        best = int(np.argmax(response))
        margin = self.config.scale_tie_tolerance * abs(response[center])
        if response[best] - response[center] <= margin:
            return center
        return best
