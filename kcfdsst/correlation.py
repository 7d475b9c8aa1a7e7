"""Kernelized correlation filter: gaussian-kernel ridge regression in the Fourier domain."""
import logging
from typing import Optional

import numpy as np

from kcfdsst import spectral
from kcfdsst.config import TrackerConfig
from kcfdsst.features import FeatureShape

logger = logging.getLogger(__name__)


def sub_pixel_peak(left, center, right):
    """Parabolic peak offset from three neighbouring samples; 0 when the fit is flat."""
    divisor = 2 * center - right - left
    if divisor == 0:
        return 0.0
    return 0.5 * (right - left) / divisor


def gaussian_peak(shape: FeatureShape, padding: float, output_sigma_factor: float) -> np.ndarray:
    """Spectrum of a 2-D gaussian centred at (rows // 2, cols // 2)."""
    sizey, sizex = shape.height, shape.width
    output_sigma = np.sqrt(sizex * sizey) / padding * output_sigma_factor
    mult = -0.5 / (output_sigma * output_sigma)
    y, x = np.ogrid[0:sizey, 0:sizex]
    res = np.exp(mult * ((y - sizey // 2) ** 2 + (x - sizex // 2) ** 2))
    return spectral.fft2(res)


class CorrelationFilter:
    """
    Appearance template plus dual coefficients for the translation filter.

    ``template`` holds the exponentially smoothed feature map and ``alphaf``
    the smoothed frequency-domain regression weights. Both always match the
    shape of the feature maps they were trained on.
    """

    def __init__(self, config: TrackerConfig, shape: FeatureShape):
        self.config = config
        self.shape = shape
        self.prob = gaussian_peak(shape, config.padding, config.output_sigma_factor)
        self.alphaf = np.zeros((shape.height, shape.width), dtype=np.complex128)
        self.template: Optional[np.ndarray] = None

    ### ----------------------------------------------------
    ### SECTION A: KERNEL
    ### ----------------------------------------------------
    def gaussian_correlation(self, x1, x2):
        """
        Gaussian kernel between ``x1`` and every cyclic shift of ``x2``.

        Both inputs must have the same shape and be windowed. The zero-shift
        response sits at the centre of the returned map.
        """
        cf = spectral.complex_multiply(spectral.fft2(x1), spectral.fft2(x2), conj_b=True)
        c = spectral.real(spectral.ifft2(cf))
        if c.ndim == 3:
            # Per-channel cross-correlations add up
            c = c.sum(axis=2)
        c = spectral.rearrange(c)

        d = (np.sum(x1 * x1) + np.sum(x2 * x2) - 2.0 * c) / FeatureShape.of(x1).size
        d = np.maximum(d, 0)
        return np.exp(-d / (self.config.sigma * self.config.sigma))

    ### ----------------------------------------------------
    ### SECTION B: TRAIN / DETECT
    ### ----------------------------------------------------
    def train(self, x, interp_factor):
        k = self.gaussian_correlation(x, x)
        # Ridge term goes on the zero-shift sample, which sits at the centre of the
        # rearranged kernel; its spectrum then carries the same phase as fft2(k).
        rows, cols = k.shape
        k[rows // 2, cols // 2] += self.config.lambda_
        alphaf = spectral.complex_divide(self.prob, spectral.fft2(k))

        if self.template is None:
            self.template = np.zeros_like(x)
        self.template = (1 - interp_factor) * self.template + interp_factor * x
        self.alphaf = (1 - interp_factor) * self.alphaf + interp_factor * alphaf
        self.shape = FeatureShape.of(x)

    def detect(self, z, x):
        """
        Locate ``x`` relative to template ``z``.

        Returns ``((dx, dy), peak_value)`` with the offset in feature cells
        measured from the response centre.
        """
        k = self.gaussian_correlation(x, z)
        res = spectral.real(spectral.ifft2(spectral.complex_multiply(self.alphaf, spectral.fft2(k))))

        py, px = np.unravel_index(np.argmax(res), res.shape)
        peak_value = float(res[py, px])
        rows, cols = res.shape

        p_x, p_y = float(px), float(py)
        if 0 < px < cols - 1:
            p_x += sub_pixel_peak(res[py, px - 1], peak_value, res[py, px + 1])
        if 0 < py < rows - 1:
            p_y += sub_pixel_peak(res[py - 1, px], peak_value, res[py + 1, px])

        p_x -= cols // 2
        p_y -= rows // 2
        logger.debug("Peak %.4f at offset (%.3f, %.3f)", peak_value, p_x, p_y)
        return (p_x, p_y), peak_value
