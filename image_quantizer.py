"""Bitmap → 5-level contribution pattern (Pillow resampling, numpy math)."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageFilter

from grid_logic import MAX_PATTERN_WIDTH, ROWS

logger = logging.getLogger(__name__)

LEVEL_TO_COUNT = (0, 1, 3, 6, 9)
QUANTILE_BUCKETS = 5

MODE_QUANTILE = "quantile"
MODE_BINARY = "binary"


@dataclass
class QuantizeOptions:
    target_width: int | None = None
    target_height: int | None = None
    invert: bool = True
    hard_threshold: int | None = None
    mode: str = MODE_QUANTILE
    binary_relax_steps: int = 1
    # Tuned defaults for the binary relaxation heuristic
    relax_step: int = 16
    sparse_ratio: float = 1 / 20
    smooth: bool = False


@dataclass
class QuantizedGrid:
    width: int
    height: int
    data: list[list[int]]
    # True when the image had no brightness variance to quantize
    flat: bool = False

    @property
    def active_cells(self) -> int:
        return sum(1 for row in self.data for v in row if v)


def load_bitmap(source) -> Image.Image:
    """Open and decode an image file (path or file object).

    Decoding errors propagate as ``PIL.UnidentifiedImageError`` / ``OSError``.
    """
    img = Image.open(source)
    img.load()
    return img


def target_size(img_w: int, img_h: int, options: QuantizeOptions) -> tuple[int, int]:
    """Resolve the output grid size, deriving missing sides from the aspect ratio."""
    if options.target_width:
        width = options.target_width
    else:
        width = round(img_w / max(img_h, 1) * ROWS)
    width = min(max(int(width), 1), MAX_PATTERN_WIDTH)
    if options.target_height:
        height = options.target_height
    else:
        height = round(img_h / max(img_w, 1) * width)
    height = min(max(int(height), 1), ROWS)
    return width, height


def _to_rgb(img: Image.Image) -> Image.Image:
    # Transparent areas count as white paper
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        return Image.alpha_composite(background, rgba).convert("RGB")
    return img.convert("RGB")


def luminance(img: Image.Image, invert: bool = False,
              hard_threshold: int | None = None) -> np.ndarray:
    """Per-pixel ``round(0.299R + 0.587G + 0.114B)`` as an int array."""
    rgb = np.asarray(_to_rgb(img), dtype=np.float64)
    y = np.floor(rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114 + 0.5)
    y = np.clip(y, 0, 255).astype(np.int64)
    if invert:
        y = 255 - y
    if hard_threshold is not None:
        y[y <= hard_threshold] = 0
    return y


def stretch(values: np.ndarray) -> np.ndarray:
    """Min-max stretch the non-zero values to 0–255; zeros stay 0.

    If every non-zero value is equal they are all taken as 255.
    """
    out = values.copy()
    mask = out > 0
    if not mask.any():
        return out
    lo = int(out[mask].min())
    hi = int(out[mask].max())
    if hi == lo:
        out[mask] = 255
        return out
    scaled = (out[mask] - lo) * 255.0 / (hi - lo)
    out[mask] = np.floor(scaled + 0.5).astype(np.int64)
    return out


def quantile_thresholds(values: np.ndarray, buckets: int = QUANTILE_BUCKETS) -> list[int]:
    """Equal-population split points of ``values`` (``buckets - 1`` of them)."""
    ordered = np.sort(values.ravel())
    n = len(ordered)
    thresholds = []
    for i in range(1, buckets):
        idx = (n * i) // buckets
        thresholds.append(int(ordered[idx]) if idx < n else 255)
    return thresholds


def quantize_quantile(values: np.ndarray) -> tuple[np.ndarray, bool]:
    """Map normalized brightness to intensities by rank. Returns (grid, flat)."""
    nonzero = values[values > 0]
    population = nonzero if nonzero.size and np.ptp(nonzero) > 0 else values
    counts = np.array(LEVEL_TO_COUNT)
    if population.size == 0 or np.ptp(population) == 0:
        levels = np.clip(np.floor(values / 255.0 * 4 + 0.5), 0, 4).astype(np.int64)
        return counts[levels], True
    thresholds = quantile_thresholds(population)
    logger.debug("Quantile thresholds: %s", thresholds)
    levels = np.zeros(values.shape, dtype=np.int64)
    for t in thresholds:
        levels += (values > t).astype(np.int64)
    return counts[levels], False


def otsu_threshold(values: np.ndarray) -> int:
    """Threshold maximizing between-class variance; pixels above it are 'on'."""
    values = values.astype(np.int64).ravel()
    if values.size == 0:
        return 255
    if np.ptp(values) == 0:
        return int(values[0]) - 1
    hist = np.bincount(values, minlength=256).astype(np.float64)
    bins = np.arange(hist.size, dtype=np.float64)
    w0 = np.cumsum(hist)
    w1 = hist.sum() - w0
    sum0 = np.cumsum(hist * bins)
    with np.errstate(divide="ignore", invalid="ignore"):
        mu0 = sum0 / w0
        mu1 = (sum0[-1] - sum0) / w1
        between = w0 * w1 * (mu0 - mu1) ** 2
    return int(np.argmax(np.nan_to_num(between)))


def quantize_binary(values: np.ndarray, options: QuantizeOptions) -> tuple[np.ndarray, bool]:
    """Otsu binarization to 0 / 9 with optional threshold relaxation."""
    nonzero = values[values > 0]
    if nonzero.size == 0:
        return np.zeros(values.shape, dtype=np.int64), True

    threshold = otsu_threshold(nonzero)
    top = LEVEL_TO_COUNT[-1]
    base = np.where(values > threshold, top, 0).astype(np.int64)
    base_active = int(np.count_nonzero(base))
    sparse = base_active < values.size * options.sparse_ratio

    best, best_active = base, base_active
    for step in range(1, min(max(options.binary_relax_steps, 0), 2) + 1):
        relaxed_t = max(threshold - options.relax_step * step, 0)
        relaxed = np.where(values > relaxed_t, top, 0).astype(np.int64)
        active = int(np.count_nonzero(relaxed))
        # A sparse base result takes the relaxed threshold even without a gain
        if active > best_active or (sparse and active >= best_active):
            best, best_active = relaxed, active
    logger.debug("Otsu threshold %d: %d -> %d active cells", threshold, base_active, best_active)
    return best, bool(np.ptp(values) == 0)


def quantize_image(img: Image.Image, options: QuantizeOptions | None = None) -> QuantizedGrid:
    """Resample ``img`` to the grid size and quantize it to {0, 1, 3, 6, 9}."""
    options = options or QuantizeOptions()
    width, height = target_size(img.width, img.height, options)

    if options.smooth:
        img = img.filter(ImageFilter.SMOOTH)
    small = _to_rgb(img).resize((width, height), Image.Resampling.BOX)

    values = stretch(luminance(small, options.invert, options.hard_threshold))
    if options.mode == MODE_BINARY:
        grid, flat = quantize_binary(values, options)
    else:
        grid, flat = quantize_quantile(values)

    data = [[int(v) for v in row] for row in grid]
    result = QuantizedGrid(width, height, data, flat)
    logger.debug("Quantized %dx%d image to %dx%d (%s), %d active",
                 img.width, img.height, width, height, options.mode, result.active_cells)
    return result
