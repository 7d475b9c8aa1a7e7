import logging

import pytest

from kcfdsst.config import TrackerConfig


class TestForModes:
    def test_hog_single_scale_fixed_window(self):
        cfg = TrackerConfig.for_modes(hog=True, fixed_window=True, multiscale=False, lab=False)
        assert cfg.hog and not cfg.lab and not cfg.multiscale
        assert cfg.cell_size == 4
        assert cfg.sigma == pytest.approx(0.6)
        assert cfg.interp_factor == pytest.approx(0.012)
        assert cfg.template_size == 96
        assert cfg.scale_step == 1.0

    def test_hog_with_lab_uses_lab_bundle(self):
        cfg = TrackerConfig.for_modes(hog=True, fixed_window=True, multiscale=False, lab=True)
        assert cfg.lab
        assert cfg.interp_factor == pytest.approx(0.005)
        assert cfg.sigma == pytest.approx(0.4)
        assert cfg.output_sigma_factor == pytest.approx(0.1)

    def test_raw_pixels_drop_lab_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="kcfdsst.config"):
            cfg = TrackerConfig.for_modes(hog=False, fixed_window=True, multiscale=False, lab=True)
        assert not cfg.hog and not cfg.lab
        assert cfg.cell_size == 1
        assert cfg.interp_factor == pytest.approx(0.075)
        assert cfg.sigma == pytest.approx(0.2)
        assert "Lab features" in caplog.text

    def test_multiscale_forces_fixed_window(self):
        cfg = TrackerConfig.for_modes(hog=True, fixed_window=False, multiscale=True, lab=False)
        assert cfg.multiscale and cfg.fixed_window
        assert cfg.template_size == 96
        assert cfg.scale_step == pytest.approx(1.05)
        assert cfg.n_scales == 33
        assert cfg.scale_lr == pytest.approx(0.025)
        assert cfg.scale_max_area == 512
        assert cfg.scale_lambda == pytest.approx(0.01)

    def test_roi_sized_window(self):
        cfg = TrackerConfig.for_modes(hog=True, fixed_window=False, multiscale=False, lab=False)
        assert not cfg.fixed_window
        assert cfg.template_size == 1

    def test_shared_parameters(self):
        for hog in (True, False):
            cfg = TrackerConfig.for_modes(hog=hog, fixed_window=True, multiscale=True, lab=False)
            assert cfg.lambda_ == pytest.approx(0.0001)
            assert cfg.padding == pytest.approx(2.5)
            assert cfg.output_sigma_factor == pytest.approx(0.125)
