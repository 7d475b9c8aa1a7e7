import numpy as np
import pytest

from kcfdsst import spectral
from kcfdsst.config import TrackerConfig
from kcfdsst.correlation import CorrelationFilter, gaussian_peak, sub_pixel_peak
from kcfdsst.features import FeatureShape, hanning_window


@pytest.mark.parametrize("left, center, right, expected", [
    (1.0, 1.0, 1.0, 0.0),
    (0.0, 2.0, 4.0, 0.0),
    (1.0, 2.0, 1.0, 0.0),
    (0.0, 1.0, 0.5, 1.0 / 6.0),
    (0.5, 1.0, 0.0, -1.0 / 6.0),
])
def test_sub_pixel_peak(left, center, right, expected):
    assert sub_pixel_peak(left, center, right) == pytest.approx(expected)


def test_gaussian_peak_is_centred():
    shape = FeatureShape(10, 14, 31)
    target = spectral.real(spectral.ifft2(gaussian_peak(shape, 2.5, 0.125)))
    assert np.unravel_index(np.argmax(target), target.shape) == (5, 7)
    assert target[5, 7] == pytest.approx(1.0)


class TestCorrelationFilter:
    def setup_method(self):
        self.config = TrackerConfig.for_modes(hog=True, fixed_window=True, multiscale=False, lab=False)
        self.shape = FeatureShape(20, 24, 31)
        rng = np.random.default_rng(11)
        self.x = rng.normal(size=(20, 24, 31)) * hanning_window(self.shape)
        self.filter = CorrelationFilter(self.config, self.shape)

    def test_kernel_of_itself_peaks_at_centre(self):
        k = self.filter.gaussian_correlation(self.x, self.x)
        assert k.shape == (20, 24)
        assert k[10, 12] == pytest.approx(1.0)
        assert np.unravel_index(np.argmax(k), k.shape) == (10, 12)
        assert k.min() > 0

    def test_untrained_filter_is_empty(self):
        assert self.filter.template is None
        assert not np.any(self.filter.alphaf)

    def test_detect_on_training_sample(self):
        self.filter.train(self.x, 1.0)
        (dx, dy), peak = self.filter.detect(self.filter.template, self.x)
        assert dx == pytest.approx(0.0, abs=0.05)
        assert dy == pytest.approx(0.0, abs=0.05)
        assert peak > 0.9

    def test_detect_cyclic_shift(self):
        self.filter.train(self.x, 1.0)
        shifted = np.roll(self.x, (2, -3), axis=(0, 1))
        (dx, dy), peak = self.filter.detect(self.filter.template, shifted)
        assert dx == pytest.approx(-3.0, abs=0.05)
        assert dy == pytest.approx(2.0, abs=0.05)
        assert peak > 0.9

    def test_gray_maps(self):
        gray = self.x[:, :, 0]
        self.filter.train(gray, 1.0)
        assert self.filter.shape == FeatureShape(20, 24, 1)
        (dx, dy), _ = self.filter.detect(self.filter.template, np.roll(gray, 1, axis=1))
        assert dx == pytest.approx(1.0, abs=0.05)
        assert dy == pytest.approx(0.0, abs=0.05)

    def test_first_training_blends_from_zero(self):
        self.filter.train(self.x, 0.25)
        np.testing.assert_allclose(self.filter.template, 0.25 * self.x)

    def test_blending(self):
        other = np.flip(self.x, axis=0).copy()
        self.filter.train(self.x, 1.0)
        alphaf_first = self.filter.alphaf.copy()
        self.filter.train(other, 0.5)
        np.testing.assert_allclose(self.filter.template, 0.5 * self.x + 0.5 * other)

        fresh = CorrelationFilter(self.config, self.shape)
        fresh.train(other, 1.0)
        np.testing.assert_allclose(self.filter.alphaf, 0.5 * alphaf_first + 0.5 * fresh.alphaf)

    def test_flat_features_stay_centred(self):
        flat = 0.2 * hanning_window(self.shape)
        self.filter.train(flat, 1.0)
        (dx, dy), peak = self.filter.detect(self.filter.template, flat)
        assert dx == pytest.approx(0.0, abs=1e-6)
        assert dy == pytest.approx(0.0, abs=1e-6)
        assert peak > 0.5

    def test_dual_coefficients_are_real_for_symmetric_sample(self):
        flat = 0.2 * hanning_window(FeatureShape(20, 24, 1))
        filt = CorrelationFilter(self.config, FeatureShape(20, 24, 1))
        filt.train(flat, 1.0)
        assert np.abs(filt.alphaf.imag).max() < 1e-6 * np.abs(filt.alphaf).max()
        assert filt.alphaf.real.min() > 0
