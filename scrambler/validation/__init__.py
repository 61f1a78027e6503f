"""
Scrambler Validation Module

Validates scrambling inputs before any transform work begins.

Exports:
    - WarpParams: Validated warp parameters (max_distortion, steps)
    - validate_*: Eager validators for signals, shifts, frames, phase limits,
      seeds and worker counts
    - ScrambleError and its kinds: ArgumentCountError, ShapeMismatchError,
      DomainValidationError, AlignmentError
"""

from .errors import (
    ScrambleError,
    ArgumentCountError,
    ShapeMismatchError,
    DomainValidationError,
    AlignmentError,
)

from .parameters import (
    WarpParams,
    MAX_FRAME_AXES,
    validate_max_shift,
    validate_signal,
    validate_shifts,
    validate_frame,
    validate_frames,
    validate_seed,
    validate_n_jobs,
)

__all__ = [
    # Errors
    'ScrambleError',
    'ArgumentCountError',
    'ShapeMismatchError',
    'DomainValidationError',
    'AlignmentError',
    # Parameters
    'WarpParams',
    'MAX_FRAME_AXES',
    'validate_max_shift',
    'validate_signal',
    'validate_shifts',
    'validate_frame',
    'validate_frames',
    'validate_seed',
    'validate_n_jobs',
]
