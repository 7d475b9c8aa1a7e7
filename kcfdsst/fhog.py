"""
Felzenszwalb-style HOG ("FHOG") feature maps.

The pipeline is the classic three steps:

1. ``get_feature_maps``   - per-cell orientation histograms with bilinear
   spatial voting, 9 contrast-insensitive + 18 contrast-sensitive bins.
2. ``normalize_and_truncate`` - block normalisation against the four
   neighbouring 2x2 cell blocks, clipped at ``alfa``. Drops the one-cell
   border, so each side shrinks by 2 cells.
3. ``pca_feature_maps``   - the analytic projection down to 31 channels
   (18 + 9 orientation sums and 4 texture energies).
"""
from dataclasses import dataclass

import cv2
import numpy as np

NUM_SECTOR = 9
FLT_EPSILON = float(np.finfo(np.float32).eps)


@dataclass
class FeatureMap:
    """Cell grid of feature vectors, shape (size_y, size_x, num_features)."""
    map: np.ndarray

    @property
    def size_y(self) -> int:
        return self.map.shape[0]

    @property
    def size_x(self) -> int:
        return self.map.shape[1]

    @property
    def num_features(self) -> int:
        return self.map.shape[2]


def _gradients(image):
    img = image.astype(np.float32)
    if img.ndim == 2:
        img = img[:, :, np.newaxis]

    kernel = np.array([[-1.0, 0.0, 1.0]], dtype=np.float32)
    dx = np.dstack([cv2.filter2D(img[:, :, c], cv2.CV_32F, kernel) for c in range(img.shape[2])])
    dy = np.dstack([cv2.filter2D(img[:, :, c], cv2.CV_32F, kernel.T) for c in range(img.shape[2])])

    # Strongest colour channel wins
    mag2 = dx * dx + dy * dy
    best = np.argmax(mag2, axis=2)[:, :, np.newaxis]
    gx = np.take_along_axis(dx, best, axis=2)[:, :, 0]
    gy = np.take_along_axis(dy, best, axis=2)[:, :, 0]
    r = np.sqrt(np.take_along_axis(mag2, best, axis=2)[:, :, 0])

    # Border pixels have no centred difference
    r[0, :] = r[-1, :] = 0.0
    r[:, 0] = r[:, -1] = 0.0
    return gx, gy, r


def _orientation_bins(gx, gy):
    """Index in [0, 2 * NUM_SECTOR) of the best-aligned signed orientation."""
    angles = np.pi * np.arange(NUM_SECTOR) / NUM_SECTOR
    dots = gx[:, :, np.newaxis] * np.cos(angles) + gy[:, :, np.newaxis] * np.sin(angles)
    # Interleave +dot/-dot so argmax picks the same sector a sequential scan would.
    votes = np.stack((dots, -dots), axis=3).reshape(gx.shape + (2 * NUM_SECTOR,))
    best = np.argmax(votes, axis=2)
    return best // 2 + NUM_SECTOR * (best % 2)


def _interpolation_weights(k):
    half = k // 2
    j = np.arange(k, dtype=np.float64)
    a = np.where(j < half, half - j - 0.5, j - half + 0.5)
    b = np.where(j < half, half + j + 0.5, half - j - 0.5 + k)
    own = b / (a + b)
    other = a / (a + b)
    nearest = np.where(j < half, -1, 1)
    return own, other, nearest


def get_feature_maps(image: np.ndarray, k: int) -> FeatureMap:
    """Orientation histograms over ``k`` x ``k`` pixel cells (27 channels)."""
    height, width = image.shape[:2]
    size_x, size_y = width // k, height // k
    p = 3 * NUM_SECTOR

    gx, gy, r = _gradients(image)
    sector = _orientation_bins(gx, gy)

    # Per-pixel votes, trimmed to whole cells
    rows, cols = size_y * k, size_x * k
    r = r[:rows, :cols]
    sector = sector[:rows, :cols]
    votes = np.zeros((rows, cols, p), dtype=np.float32)
    np.put_along_axis(votes, (sector % NUM_SECTOR)[:, :, np.newaxis], r[:, :, np.newaxis], axis=2)
    np.put_along_axis(votes, (sector + NUM_SECTOR)[:, :, np.newaxis], r[:, :, np.newaxis], axis=2)
    votes = votes.reshape(size_y, k, size_x, k, p)

    own, other, nearest = _interpolation_weights(k)

    # One cell of padding catches votes spilling past the border; discarded after.
    padded = np.zeros((size_y + 2, size_x + 2, p), dtype=np.float32)
    for ii in range(k):
        di = 1 + nearest[ii]
        for jj in range(k):
            dj = 1 + nearest[jj]
            block = votes[:, ii, :, jj, :]
            padded[1:size_y + 1, 1:size_x + 1] += block * (own[ii] * own[jj])
            padded[di:di + size_y, 1:size_x + 1] += block * (other[ii] * own[jj])
            padded[1:size_y + 1, dj:dj + size_x] += block * (own[ii] * other[jj])
            padded[di:di + size_y, dj:dj + size_x] += block * (other[ii] * other[jj])

    return FeatureMap(padded[1:size_y + 1, 1:size_x + 1].copy())


def normalize_and_truncate(feature_map: FeatureMap, alfa: float) -> FeatureMap:
    """Block-normalise against the four surrounding 2x2 blocks (108 channels)."""
    m = feature_map.map
    if feature_map.size_y < 3 or feature_map.size_x < 3:
        return FeatureMap(np.zeros((max(feature_map.size_y - 2, 0),
                                    max(feature_map.size_x - 2, 0),
                                    NUM_SECTOR * 12), dtype=np.float32))

    part = np.sum(m[:, :, :NUM_SECTOR] ** 2, axis=2)
    c = part[1:-1, 1:-1]
    up, down = part[:-2, 1:-1], part[2:, 1:-1]
    left, right = part[1:-1, :-2], part[1:-1, 2:]
    up_left, up_right = part[:-2, :-2], part[:-2, 2:]
    down_left, down_right = part[2:, :-2], part[2:, 2:]

    norms = [
        np.sqrt(c + right + down + down_right) + FLT_EPSILON,
        np.sqrt(c + right + up + up_right) + FLT_EPSILON,
        np.sqrt(c + left + down + down_left) + FLT_EPSILON,
        np.sqrt(c + left + up + up_left) + FLT_EPSILON,
    ]

    inner = m[1:-1, 1:-1]
    insensitive = inner[:, :, :NUM_SECTOR]
    sensitive = inner[:, :, NUM_SECTOR:]
    out = np.concatenate(
        [insensitive / n[:, :, np.newaxis] for n in norms]
        + [sensitive / n[:, :, np.newaxis] for n in norms],
        axis=2,
    )
    np.minimum(out, alfa, out=out)
    return FeatureMap(out.astype(np.float32))


def pca_feature_maps(feature_map: FeatureMap) -> FeatureMap:
    """Project the 108 normalised channels down to 31."""
    m = feature_map.map
    size_y, size_x = m.shape[:2]
    nx = 1.0 / np.sqrt(NUM_SECTOR * 2)
    ny = 1.0 / np.sqrt(4)

    insensitive = m[:, :, :4 * NUM_SECTOR].reshape(size_y, size_x, 4, NUM_SECTOR)
    sensitive = m[:, :, 4 * NUM_SECTOR:].reshape(size_y, size_x, 4, 2 * NUM_SECTOR)

    out = np.concatenate([
        sensitive.sum(axis=2) * ny,
        insensitive.sum(axis=2) * ny,
        sensitive.sum(axis=3) * nx,
    ], axis=2)
    return FeatureMap(out.astype(np.float32))


def compute_fhog(image: np.ndarray, cell_size: int, truncation: float = 0.2) -> FeatureMap:
    """Full FHOG pipeline, 31 channels over (h // cell - 2) x (w // cell - 2) cells."""
    fmap = get_feature_maps(image, cell_size)
    fmap = normalize_and_truncate(fmap, truncation)
    return pca_feature_maps(fmap)
