"""
Reader — all scrambler input and record reads go through here.
"""

import numpy as np
import polars as pl
import yaml
from pathlib import Path
from typing import Any, Dict, Tuple

from scrambler.core.diffeomorphic import canvas_shape_for
from scrambler.core.displacement import WarpFields, generate_warp_fields
from scrambler.validation import DomainValidationError, WarpParams


def load_array(path: str) -> np.ndarray:
    """Load a signal or frame sequence saved with numpy."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"array not found: {p}")
    return np.load(p, allow_pickle=False)


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"record not found: {path}")
    with open(path) as f:
        return yaml.safe_load(f) or {}


def read_shift_record(path: str) -> Tuple[np.ndarray, Dict[str, Any]]:
    """
    Load an audio record written by write_shift_record.

    Args:
        path: Path to scrambled-<name>-audio.yaml

    Returns:
        (shifts, record): shifts ordered by bin
    """
    record_path = Path(path)
    record = _read_yaml(record_path)

    shifts_path = record_path.parent / record['shifts_file']
    df = pl.read_parquet(str(shifts_path)).sort('bin')
    shifts = df['shift'].to_numpy().astype(np.float64)

    return shifts, record


def read_warp_record(path: str) -> Dict[str, Any]:
    """Load a video record written by write_warp_record."""
    return _read_yaml(Path(path))


def regenerate_warp_fields(record: Dict[str, Any]) -> WarpFields:
    """
    Rebuild the displacement fields of a recorded video warp.

    Args:
        record: Dict from read_warp_record

    Returns:
        WarpFields identical to the ones used for the original warp
    """
    if record.get('seed') is None:
        raise DomainValidationError("Warp record has no seed; fields cannot be regenerated.")

    params = WarpParams(max_distortion=record['max_distortion'], steps=record['steps'])
    canvas = canvas_shape_for(record['frame_shape'])
    return generate_warp_fields(canvas[0], canvas[1], params, rng=int(record['seed']))
