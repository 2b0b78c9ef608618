"""Geometry and color utility functions used across the game."""

from __future__ import annotations

import random

import numpy as np
import pygame


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp a numeric value into the inclusive range [lo, hi]."""
    return max(lo, min(hi, value))


def spans_overlap(a_start: float, a_len: float, b_start: float, b_len: float) -> bool:
    """True if the open intervals (a_start, a_start+a_len) and (b_start, b_start+b_len) overlap."""
    return a_start + a_len > b_start and a_start < b_start + b_len


def band_contains(top: float, height: float, band_lo: float, band_hi: float) -> bool:
    """True if the vertical extent [top, top+height] lies fully inside [band_lo, band_hi]."""
    return top >= band_lo and top + height <= band_hi


def random_gap_center(rng: random.Random, height: float, margin: float) -> float:
    """Uniform gap centre in [margin, height - margin]."""
    return margin + rng.random() * (height - 2 * margin)


def scale_color(color: tuple[int, int, int], factor: float) -> tuple[int, int, int]:
    """Scale an RGB color by factor, clamped to [0,255]."""
    r, g, b = color
    return (
        int(clamp(r * factor, 0, 255)),
        int(clamp(g * factor, 0, 255)),
        int(clamp(b * factor, 0, 255)),
    )


def vertical_gradient(
    w: int,
    h: int,
    top: tuple[int, int, int],
    bottom: tuple[int, int, int],
) -> np.ndarray:
    """Build a (w, h, 3) uint8 array blending top -> bottom, laid out for surfarray."""
    t = np.linspace(0.0, 1.0, h, dtype=np.float32)[np.newaxis, :, np.newaxis]
    top_arr = np.asarray(top, dtype=np.float32)
    bot_arr = np.asarray(bottom, dtype=np.float32)
    column = top_arr * (1.0 - t) + bot_arr * t
    return np.repeat(column, w, axis=0).round().astype(np.uint8)


def gradient_surface(
    w: int,
    h: int,
    top: tuple[int, int, int],
    bottom: tuple[int, int, int],
) -> pygame.Surface:
    """Precompute a vertical gradient surface for fast blitting."""
    return pygame.surfarray.make_surface(vertical_gradient(w, h, top, bottom))
