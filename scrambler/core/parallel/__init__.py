"""
Parallel Runners

Frame-level parallelism uses joblib. Each frame task receives the same
read-only WarpContext.
"""

from .frame_runner import warp_sequence, warp_sequence_with_fields

__all__ = [
    'warp_sequence',
    'warp_sequence_with_fields',
]
