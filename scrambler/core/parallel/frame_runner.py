"""
Parallel Frame Runner

Warps every frame of a sequence with one shared set of displacement fields,
so the whole clip is deformed coherently (no per-frame flicker).

Frames are independent given the shared WarpContext, so the per-frame work
can run through joblib. Results are written to a slot per frame index and
the output order always matches the input order. Any frame failure aborts
the batch.
"""

import logging
import multiprocessing
from typing import Optional, Tuple

import numpy as np
from joblib import Parallel, delayed

from scrambler.core.diffeomorphic import WarpContext, build_warp_context, warp_frame
from scrambler.core.displacement import WarpFields
from scrambler.validation import WarpParams, validate_frames


def _warp_indexed(index: int, frame: np.ndarray, context: WarpContext) -> Tuple[int, np.ndarray]:
    """Warp one frame - designed for parallel execution."""
    return index, warp_frame(frame, context)


def _run_frames(
    frames: np.ndarray,
    context: WarpContext,
    parallel: bool,
    n_jobs: Optional[int],
    verbose: bool,
) -> np.ndarray:
    n_frames = frames.shape[0]
    warped = np.empty(frames.shape, dtype=np.float64)

    if parallel and n_frames > 1:
        n_jobs = n_jobs or multiprocessing.cpu_count()
        if verbose:
            print(f"  [PARALLEL] Warping {n_frames} frames on {n_jobs} workers...")

        results = Parallel(n_jobs=n_jobs)(
            delayed(_warp_indexed)(i, frames[i], context)
            for i in range(n_frames)
        )
    else:
        results = []
        for i in range(n_frames):
            if verbose:
                print(f"  Applying warp for frame {i + 1} of {n_frames}")
            results.append(_warp_indexed(i, frames[i], context))

    for index, frame in results:
        warped[index] = frame

    return warped


def warp_sequence_with_fields(
    frames: np.ndarray,
    params,
    parallel: bool = False,
    rng=None,
    fields: Optional[WarpFields] = None,
    n_jobs: Optional[int] = None,
    verbose: bool = False,
) -> Tuple[np.ndarray, WarpFields]:
    """
    Warp a frame sequence and return the fields that were used.

    Args:
        frames: (n_frames, rows, cols) or (n_frames, rows, cols, planes)
        params: WarpParams or [max_distortion, steps]
        parallel: Dispatch frames through joblib
        rng: numpy Generator, int seed, or None. Unused when fields is given.
        fields: Precomputed canvas-sized fields
        n_jobs: joblib worker count (default: all cores)
        verbose: Print progress

    Returns:
        (warped, fields): warped is float64 with the shape of frames
    """
    frames = validate_frames(frames)
    params = WarpParams.coerce(params)

    context = build_warp_context(frames.shape[1:], params, rng=rng, fields=fields)

    logging.getLogger(__name__).debug(
        "warp_sequence: %d frames of %s, parallel=%s",
        frames.shape[0], frames.shape[1:], parallel,
    )

    warped = _run_frames(frames, context, parallel, n_jobs, verbose)
    return warped, context.fields


def warp_sequence(
    frames: np.ndarray,
    params,
    parallel: bool = False,
    rng=None,
    fields: Optional[WarpFields] = None,
    n_jobs: Optional[int] = None,
    verbose: bool = False,
) -> np.ndarray:
    """
    Warp a frame sequence coherently.

    Same arguments as warp_sequence_with_fields.

    Returns:
        Warped frames, float64, same shape as frames
    """
    warped, _ = warp_sequence_with_fields(
        frames, params,
        parallel=parallel, rng=rng, fields=fields, n_jobs=n_jobs, verbose=verbose,
    )
    return warped
