"""Thin numpy wrappers for the frequency-domain arithmetic used by the filters."""
import numpy as np


def fft2(x):
    """2-D forward transform over the two spatial axes (channels last), in double precision."""
    return np.fft.fft2(np.asarray(x, dtype=np.float64), axes=(0, 1))


def ifft2(xf):
    return np.fft.ifft2(xf, axes=(0, 1))


def fft_rows(x):
    """1-D transform of every row independently, in double precision."""
    return np.fft.fft(np.asarray(x, dtype=np.float64), axis=1)


def ifft_real(xf):
    return np.real(np.fft.ifft(xf))


def complex_multiply(a, b, conj_b=False):
    return a * (np.conj(b) if conj_b else b)


def complex_divide(a, b):
    return a / b


def real(x):
    return np.real(x)


def rearrange(img):
    """Swap quadrants so the zero-shift element sits at (rows // 2, cols // 2)."""
    return np.fft.fftshift(img, axes=(0, 1))
