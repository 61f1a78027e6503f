"""
Scrambler IO

manifest.py  - manifest.yaml loading and parameter resolution
reader.py    - .npy inputs, shift/warp records, field regeneration
writer.py    - .npy outputs, shift/warp records
"""

from scrambler.io.manifest import (
    DEFAULTS,
    load_manifest,
    parse_phase_limit,
    get_warp_params,
    get_max_phase_shift,
    get_seed,
    get_n_jobs,
    get_signal_path,
    get_frames_path,
    get_output_dir,
)
from scrambler.io.reader import (
    load_array,
    read_shift_record,
    read_warp_record,
    regenerate_warp_fields,
)
from scrambler.io.writer import (
    output_name,
    write_array,
    write_shift_record,
    write_warp_record,
)

__all__ = [
    'DEFAULTS',
    'load_manifest',
    'parse_phase_limit',
    'get_warp_params',
    'get_max_phase_shift',
    'get_seed',
    'get_n_jobs',
    'get_signal_path',
    'get_frames_path',
    'get_output_dir',
    'load_array',
    'read_shift_record',
    'read_warp_record',
    'regenerate_warp_fields',
    'output_name',
    'write_array',
    'write_shift_record',
    'write_warp_record',
]
