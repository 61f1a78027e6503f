"""
Manifest — parse manifest.yaml into scrambling config.
"""

import ast
import copy
import math
import operator

import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from scrambler.validation import (
    DomainValidationError,
    WarpParams,
    validate_max_shift,
    validate_n_jobs,
    validate_seed,
)


DEFAULTS: Dict[str, Any] = {
    'name': None,
    'paths': {
        'signal': None,
        'frames': None,
        'output_dir': 'output',
    },
    'audio': {
        'sample_rate': None,
        'max_phase_shift': '2*pi',
    },
    'video': {
        'frame_rate': None,
        'duration': None,
        'max_distortion': 20,
        'steps': 10,
    },
    'parallel': {
        'enabled': False,
        'n_jobs': None,
    },
    'seed': None,
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_manifest(data_path: str) -> Dict[str, Any]:
    """
    Load manifest.yaml from a data directory and fill in defaults.

    Tries:
        1. data_path/manifest.yaml
        2. data_path itself (if it's a .yaml file)
    """
    p = Path(data_path)

    if p.is_file() and p.suffix in ('.yaml', '.yml'):
        manifest_path = p
    else:
        manifest_path = p / 'manifest.yaml'

    if not manifest_path.exists():
        raise FileNotFoundError(f"No manifest.yaml in {data_path}")

    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}

    manifest = _merge(DEFAULTS, raw)

    # Stash the manifest path for resolving relative paths
    manifest['_manifest_path'] = str(manifest_path)
    manifest['_data_dir'] = str(manifest_path.parent)

    return manifest


_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_NAMES = {'pi': math.pi}


def _eval_node(node):
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) \
            and not isinstance(node.value, bool):
        return float(node.value)
    if isinstance(node, ast.Name) and node.id in _NAMES:
        return _NAMES[node.id]
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _BINARY_OPS[type(node.op)](_eval_node(node.left), _eval_node(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand))
    raise ValueError(f"unsupported expression element: {ast.dump(node)}")


def parse_phase_limit(value: Any) -> float:
    """
    Resolve the maximum phase shift (radians).

    Numbers pass through. Strings may be simple arithmetic using `pi`,
    e.g. "2*pi" or "pi/4". 2*pi is the largest possible scramble and is
    equivalent to noise with the original amplitude spectrum.
    """
    if isinstance(value, str):
        try:
            value = _eval_node(ast.parse(value.strip(), mode='eval'))
        except (SyntaxError, ValueError, ZeroDivisionError, OverflowError) as e:
            raise DomainValidationError(
                f"Phase shift expression {value!r} could not be evaluated: {e}"
            ) from e
    return validate_max_shift(value)


def get_warp_params(manifest: Dict[str, Any]) -> WarpParams:
    """WarpParams from the video section."""
    video = manifest.get('video', {})
    return WarpParams(max_distortion=video.get('max_distortion'), steps=video.get('steps'))


def get_max_phase_shift(manifest: Dict[str, Any]) -> float:
    """Maximum phase shift from the audio section."""
    return parse_phase_limit(manifest.get('audio', {}).get('max_phase_shift'))


def get_seed(manifest: Dict[str, Any]) -> Optional[int]:
    """Run seed, or None when a fresh one should be drawn."""
    return validate_seed(manifest.get('seed'))


def get_n_jobs(manifest: Dict[str, Any]) -> Optional[int]:
    """joblib worker count from the parallel section."""
    return validate_n_jobs(manifest.get('parallel', {}).get('n_jobs'))


def _resolve(manifest: Dict[str, Any], key: str) -> Optional[str]:
    rel = manifest.get('paths', {}).get(key)
    if not rel:
        return None
    data_dir = Path(manifest.get('_data_dir', '.'))
    return str(data_dir / rel)


def get_signal_path(manifest: Dict[str, Any]) -> Optional[str]:
    """Absolute path to the signal .npy, or None if not configured."""
    return _resolve(manifest, 'signal')


def get_frames_path(manifest: Dict[str, Any]) -> Optional[str]:
    """Absolute path to the frames .npy, or None if not configured."""
    return _resolve(manifest, 'frames')


def get_output_dir(manifest: Dict[str, Any]) -> str:
    """Get absolute path to output directory from manifest."""
    out_path = Path(_resolve(manifest, 'output_dir') or manifest.get('_data_dir', '.'))
    out_path.mkdir(parents=True, exist_ok=True)
    return str(out_path)
