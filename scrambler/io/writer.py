"""
Writer — all scrambler outputs go through here.

Scrambled arrays are written as .npy. Each scramble also gets a record:
the audio phase shifts as parquet plus a YAML record of the parameters,
and a YAML record of the video warp whose seed regenerates the exact
displacement fields.
"""

import numpy as np
import polars as pl
import yaml
from pathlib import Path
from typing import Any, Dict, Optional

from scrambler.validation import WarpParams

AUDIO_INFO = (
    "These values provide all the needed information to recreate the "
    "scrambled audio from the source data."
)
VIDEO_INFO = (
    "These values provide all the needed information to recreate the "
    "scrambled video from the source data."
)


def output_name(name: str, suffix: str = '') -> str:
    """scrambled-<name><suffix>"""
    return f"scrambled-{name}{suffix}"


def _write_yaml(record: Dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.safe_dump(record, f, sort_keys=False)
    return path


def write_array(array: np.ndarray, output_dir: str, name: str, verbose: bool = False) -> Path:
    """Write a scrambled array to output_dir/scrambled-<name>.npy."""
    path = Path(output_dir) / output_name(name, '.npy')
    path.parent.mkdir(parents=True, exist_ok=True)
    np.save(path, array)

    if verbose:
        print(f"  -> {path} {tuple(array.shape)}")

    return path


def write_shift_record(
    shifts: np.ndarray,
    output_dir: str,
    name: str,
    max_phase_shift: Optional[float] = None,
    seed: Optional[int] = None,
    n_samples: Optional[int] = None,
    n_channels: Optional[int] = None,
    verbose: bool = False,
) -> Path:
    """
    Persist the phase shifts applied to an audio signal.

    Writes scrambled-<name>-shifts.parquet (bin, shift) and
    scrambled-<name>-audio.yaml with the parameters.

    Returns:
        Path to the YAML record
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    shifts = np.asarray(shifts, dtype=np.float64).ravel()
    shifts_path = out / output_name(name, '-shifts.parquet')
    df = pl.DataFrame({
        'bin': np.arange(1, shifts.size + 1, dtype=np.int64),
        'shift': shifts,
    })
    df.write_parquet(str(shifts_path))

    record = {
        'info': AUDIO_INFO,
        'source': name,
        'shifts_file': shifts_path.name,
        'n_shifts': int(shifts.size),
        'max_phase_shift': None if max_phase_shift is None else float(max_phase_shift),
        'seed': None if seed is None else int(seed),
        'n_samples': None if n_samples is None else int(n_samples),
        'n_channels': None if n_channels is None else int(n_channels),
    }
    record_path = _write_yaml(record, out / output_name(name, '-audio.yaml'))

    if verbose:
        print(f"  -> {shifts_path} ({shifts.size} shifts)")
        print(f"  -> {record_path}")

    return record_path


def write_warp_record(
    output_dir: str,
    name: str,
    params: WarpParams,
    seed: int,
    frame_shape,
    verbose: bool = False,
) -> Path:
    """
    Persist what is needed to regenerate a video warp.

    Writes scrambled-<name>-video.yaml.

    Returns:
        Path to the YAML record
    """
    params = WarpParams.coerce(params)
    record = {
        'info': VIDEO_INFO,
        'source': name,
        'seed': int(seed),
        'max_distortion': params.max_distortion,
        'steps': params.steps,
        'frame_shape': [int(frame_shape[0]), int(frame_shape[1])],
    }
    record_path = _write_yaml(record, Path(output_dir) / output_name(name, '-video.yaml'))

    if verbose:
        print(f"  -> {record_path}")

    return record_path
