"""
Parameter Validation

Eager checks shared by the scrambling entry points. The core re-validates
everything it is handed, whatever the caller already checked.

PRINCIPLE: "Reject before compute, never after"

Usage:
    from scrambler.validation import WarpParams, validate_max_shift

    params = WarpParams.from_sequence([20, 10])
    limit = validate_max_shift(2 * np.pi)
"""

import numbers
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np

from .errors import DomainValidationError, ShapeMismatchError

# rows, cols, planes, frame index
MAX_FRAME_AXES = 4


def _as_whole_number(value: Any, name: str) -> int:
    """Return value as int if it is a real, finite, integral number."""
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        raise DomainValidationError(
            f"{name} must be a non-negative integer, got {value!r}"
        )
    if not np.isfinite(float(value)) or float(value) != round(float(value)):
        raise DomainValidationError(
            f"{name} must be a non-negative integer, got {value!r}"
        )
    return int(round(float(value)))


@dataclass(frozen=True)
class WarpParams:
    """
    Warp parameters for one scrambling episode.

    Attributes:
        max_distortion: Roughly the number of pixels a pixel can move per
            quadrant (so about a quarter of the total movement).
        steps: Number of resampling passes per quadrant. The total number of
            warps applied is steps * 4.
    """
    max_distortion: int
    steps: int

    def __post_init__(self):
        max_distortion = _as_whole_number(self.max_distortion, 'max_distortion')
        steps = _as_whole_number(self.steps, 'steps')

        if max_distortion < 0:
            raise DomainValidationError(
                f"max_distortion must be non-negative, got {max_distortion}"
            )
        if steps < 1:
            raise DomainValidationError(f"steps must be at least 1, got {steps}")

        object.__setattr__(self, 'max_distortion', max_distortion)
        object.__setattr__(self, 'steps', steps)

    @property
    def step_scale(self) -> float:
        """Magnitude applied to an RMS-normalised field."""
        return self.max_distortion / self.steps

    @classmethod
    def from_sequence(cls, values: Sequence) -> 'WarpParams':
        """Build from a two-element [max_distortion, steps] sequence."""
        arr = np.asarray(values, dtype=object).ravel()
        if arr.size != 2:
            raise ShapeMismatchError('warp parameters', 2, arr.size)
        return cls(max_distortion=arr[0], steps=arr[1])

    @classmethod
    def coerce(cls, params) -> 'WarpParams':
        """Accept a WarpParams, a mapping or a two-element sequence."""
        if isinstance(params, cls):
            return params
        if isinstance(params, dict):
            return cls(
                max_distortion=params.get('max_distortion'),
                steps=params.get('steps'),
            )
        return cls.from_sequence(params)

    def to_dict(self) -> dict:
        return {'max_distortion': self.max_distortion, 'steps': self.steps}


def validate_max_shift(max_shift: Any) -> float:
    """
    Validate the upper bound for random phase shifts.

    Args:
        max_shift: Largest phase shift in radians (a single real number)

    Returns:
        max_shift as float

    Raises:
        DomainValidationError: If max_shift is not a finite real scalar
    """
    arr = np.asarray(max_shift)
    if arr.ndim != 0 or arr.dtype.kind not in 'iuf':
        raise DomainValidationError(
            f"Expecting the maximum phase shift to be a single number, got {max_shift!r}"
        )
    value = float(arr)
    if not np.isfinite(value):
        raise DomainValidationError(f"Maximum phase shift must be finite, got {value}")
    return value


def validate_signal(signal: Any) -> np.ndarray:
    """
    Validate a time-domain signal (rows = samples, columns = channels).

    Returns:
        The signal as a float64 array
    """
    arr = np.asarray(signal)
    if arr.ndim != 2:
        raise DomainValidationError(
            f"Signal must be 2-D (samples x channels), got {arr.ndim}-D"
        )
    if arr.dtype.kind not in 'biuf':
        raise DomainValidationError(f"Signal must be real-valued, got dtype {arr.dtype}")
    if arr.shape[0] < 1 or arr.shape[1] < 1:
        raise DomainValidationError(f"Signal must not be empty, got shape {arr.shape}")
    return arr.astype(np.float64)


def validate_shifts(shifts: Any, n_bins: int, n_samples: int) -> np.ndarray:
    """
    Validate a precomputed phase-shift vector against the derived bin count.

    Args:
        shifts: One shift per positive frequency bin (DC and Nyquist excluded)
        n_bins: Required length (L/2 - 1 for the even-padded length L)
        n_samples: Even-padded sample count, for the error message

    Returns:
        The shifts as a 1-D float64 array
    """
    arr = np.asarray(shifts)
    if arr.dtype.kind not in 'iuf':
        raise DomainValidationError(f"Phase shifts must be real numbers, got dtype {arr.dtype}")

    # a column vector is accepted as well as a flat one
    if arr.ndim == 2 and arr.shape[1] == 1:
        arr = arr[:, 0]
    if arr.ndim != 1 or arr.shape[0] != n_bins:
        raise ShapeMismatchError(
            'phase shifts', (n_bins,), arr.shape,
            message=(
                f"Due to how the FFT works there are only {n_bins} frequencies "
                f"that can be shifted given {n_samples} samples; "
                f"got shifts of shape {arr.shape}."
            ),
        )
    arr = arr.astype(np.float64)
    if not np.all(np.isfinite(arr)):
        raise DomainValidationError("Phase shifts must be finite")
    return arr


def validate_frame(frame: Any) -> np.ndarray:
    """Validate a single 2-D or 3-D frame. Returns it as a float64 array."""
    arr = np.asarray(frame)
    if arr.ndim not in (2, 3):
        raise DomainValidationError(
            f"A frame must be (rows, cols) or (rows, cols, planes), got {arr.ndim}-D"
        )
    if arr.dtype.kind not in 'biuf':
        raise DomainValidationError(f"Frame must be real-valued, got dtype {arr.dtype}")
    if min(arr.shape) < 1:
        raise DomainValidationError(f"Frame must not be empty, got shape {arr.shape}")
    return arr.astype(np.float64)


def validate_frames(frames: Any) -> np.ndarray:
    """
    Validate a frame sequence with the frame index on the first axis.

    Accepts (n_frames, rows, cols) or (n_frames, rows, cols, planes).
    """
    arr = np.asarray(frames)
    if arr.ndim > MAX_FRAME_AXES:
        raise DomainValidationError(
            f"Expecting frames in no more than {MAX_FRAME_AXES} dimensions, got {arr.ndim}"
        )
    if arr.ndim < 3:
        raise DomainValidationError(
            "Expecting a frame sequence shaped (n_frames, rows, cols[, planes]), "
            f"got {arr.ndim}-D"
        )
    if arr.dtype.kind not in 'biuf':
        raise DomainValidationError(f"Frames must be real-valued, got dtype {arr.dtype}")
    if min(arr.shape) < 1:
        raise DomainValidationError(f"Frame sequence must not be empty, got shape {arr.shape}")
    return arr


def validate_seed(seed: Any) -> Optional[int]:
    """
    Validate a run seed. None means a fresh seed will be drawn.

    Returns:
        seed as int, or None
    """
    if seed is None:
        return None
    # fresh seeds are 128-bit, so integers must not pass through float
    if isinstance(seed, numbers.Integral) and not isinstance(seed, (bool, np.bool_)):
        value = int(seed)
    else:
        value = _as_whole_number(seed, 'seed')
    if value < 0:
        raise DomainValidationError(f"seed must be a non-negative integer, got {seed!r}")
    return value


def validate_n_jobs(n_jobs: Any) -> Optional[int]:
    """
    Validate a joblib worker count. None means all cores.

    Negative values follow joblib (-1 = all cores, -2 = all but one).
    """
    if n_jobs is None:
        return None
    if isinstance(n_jobs, (bool, np.bool_)) or not isinstance(n_jobs, numbers.Real):
        raise DomainValidationError(f"n_jobs must be a non-zero integer, got {n_jobs!r}")
    if not np.isfinite(float(n_jobs)) or float(n_jobs) != round(float(n_jobs)) or n_jobs == 0:
        raise DomainValidationError(f"n_jobs must be a non-zero integer, got {n_jobs!r}")
    return int(round(float(n_jobs)))
