"""
Scrambler — controlled scrambled stimuli for psychophysics.

Public API:
    from scrambler import phase_shift, warp_sequence
    scrambled, shifts = phase_shift(signal, max_shift=2 * np.pi)
    warped = warp_sequence(frames, WarpParams(20, 10), parallel=True)

Audio keeps its amplitude spectrum and loses its phase structure.
Video is deformed by a smooth diffeomorphic warp, the same warp for every
frame, so local image statistics survive and nothing flickers.

Layers:
    scrambler.core        Compute — arrays in, arrays out, no file I/O
    scrambler.io          Manifest, .npy arrays, reproducibility records
    scrambler.validation  Error kinds and eager parameter checks
    scrambler.run         Orchestration + CLI (python -m scrambler <dir>)
"""

__version__ = "0.1.0"

from scrambler.core import (
    phase_shift,
    generate_field,
    generate_warp_fields,
    build_warp_context,
    warp_frame,
    diffeomorphic,
    warp_sequence,
    warp_sequence_with_fields,
    DisplacementField,
    WarpFields,
    WarpContext,
)
from scrambler.validation import (
    WarpParams,
    ScrambleError,
    ArgumentCountError,
    ShapeMismatchError,
    DomainValidationError,
    AlignmentError,
)
from scrambler.run import run

__all__ = [
    "phase_shift",
    "generate_field",
    "generate_warp_fields",
    "build_warp_context",
    "warp_frame",
    "diffeomorphic",
    "warp_sequence",
    "warp_sequence_with_fields",
    "DisplacementField",
    "WarpFields",
    "WarpContext",
    "WarpParams",
    "ScrambleError",
    "ArgumentCountError",
    "ShapeMismatchError",
    "DomainValidationError",
    "AlignmentError",
    "run",
]
