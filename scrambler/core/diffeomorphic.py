"""
Diffeomorphic Warp Engine
=========================

Warps a frame through a smooth, invertible-looking deformation so that
recognisable structure is destroyed while local image statistics survive.

Method (per frame):
  1. Fill a canvas of twice the frame size with each plane's mean intensity
  2. Upsample the frame 2x by pixel replication and centre it on the canvas
  3. For each quadrant field (A, F-A, B, F-B):
       sample coordinates = identity grid + field, with any coordinate that
       falls off the canvas sent to the fallback position (0, 0);
       resample every plane `steps` times with bilinear interpolation,
       each pass feeding the next
  4. Downsample back to the frame size by taking every second row and column

The fields were pre-divided by `steps`, so the compounded small steps add
up to the requested distortion. Total resampling passes: 4 * steps.

Sampling coordinates depend only on the fields, so they are built once per
batch in a WarpContext and shared read-only by every frame.

References:
    Stojanoski & Cusack (2014) Journal of Vision 14(12):6
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.ndimage import map_coordinates

from scrambler.core.displacement import (
    DisplacementField,
    WarpFields,
    generate_warp_fields,
)
from scrambler.validation import (
    ShapeMismatchError,
    WarpParams,
    validate_frame,
)

# Upsampling factor per spatial axis
CANVAS_FACTOR = 2

# Where out-of-canvas samples are read from (row, col)
FALLBACK_COORDINATE = (0, 0)


@dataclass(frozen=True)
class WarpContext:
    """
    Everything a frame task needs, built once per batch.

    Attributes:
        frame_shape: (rows, cols) of the source frames
        canvas_shape: (rows, cols) of the working canvas
        steps: Resampling passes per quadrant
        fields: The A, B, F fields the coordinates were built from
        coordinates: Four (2, rows, cols) sample grids, one per quadrant
    """
    frame_shape: Tuple[int, int]
    canvas_shape: Tuple[int, int]
    steps: int
    fields: WarpFields
    coordinates: Tuple[np.ndarray, ...]


def canvas_shape_for(frame_shape: Sequence[int]) -> Tuple[int, int]:
    """Canvas (rows, cols) for a frame of the given shape."""
    return (CANVAS_FACTOR * int(frame_shape[0]), CANVAS_FACTOR * int(frame_shape[1]))


def sample_coordinates(field: DisplacementField) -> np.ndarray:
    """
    Absolute sample positions for one quadrant field.

    Positions outside the canvas on either axis collapse to
    FALLBACK_COORDINATE rather than wrapping or reflecting.

    Returns:
        Array of shape (2, rows, cols): row and column coordinates
    """
    n_rows, n_cols = field.shape
    grid_rows, grid_cols = np.meshgrid(
        np.arange(n_rows, dtype=np.float64),
        np.arange(n_cols, dtype=np.float64),
        indexing='ij',
    )

    rows = grid_rows + field.x
    cols = grid_cols + field.y

    outside = (rows < 0) | (rows > n_rows - 1) | (cols < 0) | (cols > n_cols - 1)
    rows[outside] = FALLBACK_COORDINATE[0]
    cols[outside] = FALLBACK_COORDINATE[1]

    return np.stack([rows, cols])


def build_warp_context(
    frame_shape: Sequence[int],
    params,
    rng=None,
    fields: Optional[WarpFields] = None,
) -> WarpContext:
    """
    Prepare the shared warp state for frames of one shape.

    Args:
        frame_shape: Shape of a single frame; only (rows, cols) is used
        params: WarpParams or [max_distortion, steps]
        rng: numpy Generator, int seed, or None. Unused when fields is given.
        fields: Precomputed fields (canvas-sized), e.g. regenerated from a record

    Returns:
        WarpContext
    """
    params = WarpParams.coerce(params)
    frame_rows, frame_cols = int(frame_shape[0]), int(frame_shape[1])
    canvas = canvas_shape_for((frame_rows, frame_cols))

    if fields is None:
        fields = generate_warp_fields(canvas[0], canvas[1], params, rng)
    else:
        fields.check_shape(canvas)

    coordinates = tuple(sample_coordinates(q) for q in fields.quadrants())

    logging.getLogger(__name__).debug(
        "build_warp_context: frame %dx%d, canvas %dx%d, %d steps per quadrant",
        frame_rows, frame_cols, canvas[0], canvas[1], params.steps,
    )

    return WarpContext(
        frame_shape=(frame_rows, frame_cols),
        canvas_shape=canvas,
        steps=params.steps,
        fields=fields,
        coordinates=coordinates,
    )


def _background_canvas(frame: np.ndarray, canvas_shape: Tuple[int, int]) -> np.ndarray:
    """Canvas filled per plane with that plane's mean intensity."""
    background = frame.mean(axis=(0, 1))
    canvas = np.empty(canvas_shape + (frame.shape[2],), dtype=np.float64)
    canvas[...] = background
    return canvas


def _upsample(frame: np.ndarray) -> np.ndarray:
    """Each pixel becomes a CANVAS_FACTOR x CANVAS_FACTOR block."""
    return np.repeat(np.repeat(frame, CANVAS_FACTOR, axis=0), CANVAS_FACTOR, axis=1)


def warp_frame(frame: np.ndarray, context: WarpContext) -> np.ndarray:
    """
    Warp one frame with the shared context.

    Args:
        frame: (rows, cols) or (rows, cols, planes)
        context: WarpContext built for this frame shape

    Returns:
        Warped frame, float64, same shape as frame
    """
    data = validate_frame(frame)
    is_flat = data.ndim == 2
    if is_flat:
        data = data[:, :, np.newaxis]

    if data.shape[:2] != context.frame_shape:
        raise ShapeMismatchError('frame', context.frame_shape, data.shape[:2])

    canvas = _background_canvas(data, context.canvas_shape)

    upsampled = _upsample(data)
    r0 = int(round((context.canvas_shape[0] - upsampled.shape[0]) / 2))
    c0 = int(round((context.canvas_shape[1] - upsampled.shape[1]) / 2))
    canvas[r0:r0 + upsampled.shape[0], c0:c0 + upsampled.shape[1], :] = upsampled

    for coords in context.coordinates:
        for plane in range(canvas.shape[2]):
            image = canvas[:, :, plane]
            for _ in range(context.steps):
                image = map_coordinates(image, coords, order=1, mode='nearest')
            canvas[:, :, plane] = image

    warped = canvas[::CANVAS_FACTOR, ::CANVAS_FACTOR, :]
    return warped[:, :, 0] if is_flat else warped


def diffeomorphic(
    frame: np.ndarray,
    params,
    rng=None,
    fields: Optional[WarpFields] = None,
) -> np.ndarray:
    """
    Warp a single frame with freshly generated (or supplied) fields.

    Args:
        frame: (rows, cols) or (rows, cols, planes)
        params: WarpParams or [max_distortion, steps]
        rng: numpy Generator, int seed, or None
        fields: Precomputed canvas-sized fields

    Returns:
        Warped frame, float64, same shape as frame
    """
    data = validate_frame(frame)
    context = build_warp_context(data.shape, params, rng=rng, fields=fields)
    return warp_frame(data, context)
