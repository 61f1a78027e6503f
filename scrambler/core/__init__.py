"""
Scrambler Core
==============

Pure computation: arrays in, arrays out, no file I/O.

Structure:
    phase_shift.py    - Spectral phase randomisation of multichannel signals
    displacement.py   - Smooth random displacement fields (A, B, F)
    diffeomorphic.py  - Single-frame diffeomorphic warp + shared WarpContext
    parallel/         - Coherent warp of a whole frame sequence (joblib)
    alignment.py      - Audio/video length bookkeeping
"""

from scrambler.core.phase_shift import (
    phase_shift,
    phase_multiplier,
    n_shift_bins,
    padded_length,
    pad_to_even,
)
from scrambler.core.displacement import (
    DisplacementField,
    WarpFields,
    generate_field,
    generate_warp_fields,
)
from scrambler.core.diffeomorphic import (
    WarpContext,
    FALLBACK_COORDINATE,
    build_warp_context,
    canvas_shape_for,
    sample_coordinates,
    warp_frame,
    diffeomorphic,
)
from scrambler.core.parallel import warp_sequence, warp_sequence_with_fields
from scrambler.core.alignment import (
    samples_per_frame,
    check_audio_length,
    pad_audio_to_frames,
    audio_for_frame,
    check_frame_count,
)

__all__ = [
    # Phase
    'phase_shift',
    'phase_multiplier',
    'n_shift_bins',
    'padded_length',
    'pad_to_even',
    # Fields
    'DisplacementField',
    'WarpFields',
    'generate_field',
    'generate_warp_fields',
    # Warp
    'WarpContext',
    'FALLBACK_COORDINATE',
    'build_warp_context',
    'canvas_shape_for',
    'sample_coordinates',
    'warp_frame',
    'diffeomorphic',
    'warp_sequence',
    'warp_sequence_with_fields',
    # Alignment
    'samples_per_frame',
    'check_audio_length',
    'pad_audio_to_frames',
    'audio_for_frame',
    'check_frame_count',
]
