"""
Displacement Field Engine
=========================

Builds smooth random displacement fields from a sum of low-frequency
cosine products (a random DCT-like basis).

For each of the 6 x 6 frequency pairs (fx, fy), fx, fy in 1..6:

    x += w0 * cos(2*pi*fx*r/n_rows + p0) * cos(2*pi*fy*c/n_cols + p1)
    y += w1 * cos(2*pi*fx*r/n_rows + p2) * cos(2*pi*fy*c/n_cols + p3)

with r, c the 1-based grid coordinates, phases p uniform in [0, 2*pi) and
weights w also uniform in [0, 2*pi). Each field is then normalised to unit
RMS and scaled by max_distortion / steps.

A warp episode draws three independent fields A, B and F. The warper
applies them as four quadrants A, F-A, B, F-B: the shared F correlates the
quadrant pairs.

References:
    Stojanoski & Cusack (2014) "Time to wave good-bye to phase scrambling:
    Creating controlled scrambled images using diffeomorphic transformations"
    Journal of Vision 14(12):6
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np

from scrambler.validation import ShapeMismatchError, WarpParams

# Basis size per axis
N_COMPONENTS = 6


@dataclass(frozen=True)
class DisplacementField:
    """
    Per-pixel offsets.

    Attributes:
        x: Offsets along rows (axis 0)
        y: Offsets along columns (axis 1)
    """
    x: np.ndarray
    y: np.ndarray

    @property
    def shape(self) -> Tuple[int, int]:
        return self.x.shape

    def __sub__(self, other: 'DisplacementField') -> 'DisplacementField':
        return DisplacementField(x=self.x - other.x, y=self.y - other.y)


@dataclass(frozen=True)
class WarpFields:
    """The three independently generated fields of one warp episode."""
    a: DisplacementField
    b: DisplacementField
    f: DisplacementField

    @property
    def shape(self) -> Tuple[int, int]:
        return self.a.shape

    def quadrants(self) -> Iterator[DisplacementField]:
        """Yield the quadrant fields in their fixed order: A, F-A, B, F-B."""
        yield self.a
        yield self.f - self.a
        yield self.b
        yield self.f - self.b

    def check_shape(self, shape: Tuple[int, int]) -> None:
        for name in ('a', 'b', 'f'):
            field_shape = getattr(self, name).shape
            if tuple(field_shape) != tuple(shape):
                raise ShapeMismatchError(f'displacement field {name}', tuple(shape), field_shape)


def _basis_sum(
    weights: np.ndarray,
    row_phase: np.ndarray,
    col_phase: np.ndarray,
    rows: np.ndarray,
    cols: np.ndarray,
    n_rows: int,
    n_cols: int,
) -> np.ndarray:
    freqs = np.arange(1, N_COMPONENTS + 1)

    # (fx, fy, n_rows) and (fx, fy, n_cols) cosine tables
    row_terms = np.cos(
        2 * np.pi * freqs[:, None, None] * rows[None, None, :] / n_rows
        + row_phase[:, :, None]
    )
    col_terms = np.cos(
        2 * np.pi * freqs[None, :, None] * cols[None, None, :] / n_cols
        + col_phase[:, :, None]
    )

    return np.tensordot(weights[:, :, None] * row_terms, col_terms, axes=([0, 1], [0, 1]))


def _rms_normalise(field: np.ndarray) -> np.ndarray:
    return field / np.sqrt(np.mean(field * field))


def generate_field(
    n_rows: int,
    n_cols: int,
    max_distortion: float,
    steps: int,
    rng=None,
) -> DisplacementField:
    """
    Generate one smooth random displacement field.

    Args:
        n_rows: Grid height
        n_cols: Grid width
        max_distortion: Overall distortion magnitude
        steps: Number of resampling passes the field will be applied for
        rng: numpy Generator, int seed, or None

    Returns:
        DisplacementField with unit RMS scaled by max_distortion / steps
    """
    rng = np.random.default_rng(rng)

    phases = rng.random((N_COMPONENTS, N_COMPONENTS, 4)) * 2 * np.pi
    # weights share the phase range [0, 2*pi)
    weights = rng.random((N_COMPONENTS, N_COMPONENTS, 2)) * 2 * np.pi

    rows = np.arange(1, n_rows + 1, dtype=np.float64)
    cols = np.arange(1, n_cols + 1, dtype=np.float64)

    x = _basis_sum(weights[:, :, 0], phases[:, :, 0], phases[:, :, 1], rows, cols, n_rows, n_cols)
    y = _basis_sum(weights[:, :, 1], phases[:, :, 2], phases[:, :, 3], rows, cols, n_rows, n_cols)

    scale = max_distortion / steps
    return DisplacementField(x=scale * _rms_normalise(x), y=scale * _rms_normalise(y))


def generate_warp_fields(
    n_rows: int,
    n_cols: int,
    params: WarpParams,
    rng=None,
) -> WarpFields:
    """
    Draw the three fields (A, B, F) for one warp episode.

    Args:
        n_rows: Canvas height
        n_cols: Canvas width
        params: WarpParams (or [max_distortion, steps])
        rng: numpy Generator, int seed, or None

    Returns:
        WarpFields
    """
    params = WarpParams.coerce(params)
    rng = np.random.default_rng(rng)

    logging.getLogger(__name__).debug(
        "generate_warp_fields: %dx%d grid, max_distortion=%d, steps=%d",
        n_rows, n_cols, params.max_distortion, params.steps,
    )

    a = generate_field(n_rows, n_cols, params.max_distortion, params.steps, rng)
    b = generate_field(n_rows, n_cols, params.max_distortion, params.steps, rng)
    f = generate_field(n_rows, n_cols, params.max_distortion, params.steps, rng)
    return WarpFields(a=a, b=b, f=f)
