"""Hyperparameter bundle for the KCF/DSST tracker."""
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class TrackerConfig:
    # --- Translation filter ---
    lambda_: float = 0.0001           # ridge regularization
    padding: float = 2.5              # area surrounding the target, relative to its size
    output_sigma_factor: float = 0.125  # bandwidth of the gaussian target
    interp_factor: float = 0.012      # model adaptation rate
    sigma: float = 0.6                # gaussian kernel bandwidth
    cell_size: int = 4                # HOG cell size (1 for raw pixels)
    template_size: int = 96           # 1 means "use the padded ROI size"
    truncation: float = 0.2           # HOG normalisation cap

    # --- Feature switches ---
    hog: bool = True
    lab: bool = False
    fixed_window: bool = True
    multiscale: bool = False

    # --- Scale filter (DSST) ---
    scale_padding: float = 1.0
    scale_step: float = 1.0           # 1 disables scale estimation
    scale_sigma_factor: float = 0.25
    n_scales: int = 33
    scale_lr: float = 0.025
    scale_max_area: int = 512
    scale_lambda: float = 0.01
    scale_tie_tolerance: float = 1e-3  # relative margin a scale must beat the centre by
    clamp_max_scale: bool = True

    @classmethod
    def for_modes(cls, hog=True, fixed_window=True, multiscale=True, lab=True):
        """
        Select the fixed parameter bundle for the four feature/window switches.

        Multi-scale tracking only works with a fixed template window, so it
        forces ``fixed_window`` on.
        """
        cfg = cls()

        if hog:
            cfg.interp_factor = 0.012
            cfg.sigma = 0.6
            cfg.cell_size = 4
            cfg.hog = True
            if lab:
                cfg.interp_factor = 0.005
                cfg.sigma = 0.4
                cfg.output_sigma_factor = 0.1
                cfg.lab = True
        else:
            cfg.interp_factor = 0.075
            cfg.sigma = 0.2
            cfg.cell_size = 1
            cfg.hog = False
            if lab:
                logger.warning("Lab features are only used with HOG features; disabling them.")
            cfg.lab = False

        if multiscale:
            cfg.template_size = 96
            cfg.scale_padding = 1.0
            cfg.scale_step = 1.05
            cfg.scale_sigma_factor = 0.25
            cfg.n_scales = 33
            cfg.scale_lr = 0.025
            cfg.scale_max_area = 512
            cfg.scale_lambda = 0.01
            cfg.multiscale = True
            if not fixed_window:
                logger.warning("Multi-scale tracking needs a fixed window; enabling it.")
            fixed_window = True
        elif fixed_window:
            cfg.template_size = 96
            cfg.scale_step = 1.0
        else:
            cfg.template_size = 1
            cfg.scale_step = 1.0

        cfg.fixed_window = fixed_window
        return cfg
