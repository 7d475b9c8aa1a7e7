"""Shared fixtures: deterministic synthetic frames."""
import cv2
import numpy as np
import pytest


def make_textured_frame(height=200, width=200, seed=0):
    """Smooth random blobs, stretched to the full 8-bit range."""
    rng = np.random.default_rng(seed)
    noise = rng.uniform(0, 255, (height, width, 3)).astype(np.float32)
    frame = cv2.GaussianBlur(noise, (0, 0), 3)
    frame = cv2.normalize(frame, None, 0, 255, cv2.NORM_MINMAX)
    return frame.astype(np.uint8)


def make_gradient_frame(height=200, width=200):
    ramp = np.linspace(0, 255, width, dtype=np.float32)
    gray = np.tile(ramp, (height, 1)).astype(np.uint8)
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)


@pytest.fixture
def textured_frame():
    return make_textured_frame()


@pytest.fixture
def gradient_frame():
    return make_gradient_frame()
