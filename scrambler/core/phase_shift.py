"""
Phase Shift Engine
==================

Adds random phase shifts to every frequency component of a real-valued,
multichannel time-domain signal while leaving every amplitude untouched.

Method:
  1. Zero-pad to an even number of samples L (one zero row if odd)
  2. Draw H = L/2 - 1 shifts uniformly from [0, max_shift), or take the
     caller's precomputed shifts
  3. Multiply the spectrum by exp(i*shift) on bins 1..H and by the conjugate
     exp(-i*shift) on the mirrored bins; DC and Nyquist stay at 1
  4. Inverse transform and keep the real part

The conjugate mirroring keeps the spectrum Hermitian, so the inverse of a
real signal is real (up to floating-point residue). The same shifts are
applied to every channel.

The returned shifts reproduce the scramble exactly when passed back in with
the same source signal.
"""

import logging
import warnings

import numpy as np
from typing import Optional, Tuple

from scrambler.validation import (
    ArgumentCountError,
    validate_max_shift,
    validate_shifts,
    validate_signal,
)


def padded_length(n_samples: int) -> int:
    """Even sample count used for the transform."""
    return n_samples + (n_samples % 2)


def n_shift_bins(n_samples: int) -> int:
    """Number of shiftable bins (DC and Nyquist excluded) for n_samples."""
    return padded_length(n_samples) // 2 - 1


def pad_to_even(signal: np.ndarray) -> np.ndarray:
    """Append one zero row when the sample count is odd."""
    if signal.shape[0] % 2 == 0:
        return signal
    pad = np.zeros((1, signal.shape[1]), dtype=signal.dtype)
    return np.vstack([signal, pad])


def phase_multiplier(shifts: np.ndarray, n_samples: int) -> np.ndarray:
    """
    Build the per-bin complex multiplier for an even-length spectrum.

    Args:
        shifts: H = n_samples/2 - 1 phase shifts (radians)
        n_samples: Even transform length

    Returns:
        Complex array of length n_samples
    """
    n_bins = n_samples // 2 - 1
    shifts = validate_shifts(shifts, n_bins, n_samples)

    multiplier = np.ones(n_samples, dtype=np.complex128)
    multiplier[1:n_bins + 1] = np.exp(1j * shifts)
    # bin L-k carries the conjugate of bin k
    multiplier[n_bins + 2:] = np.exp(-1j * shifts[::-1])
    return multiplier


def phase_shift(
    signal: np.ndarray,
    max_shift: Optional[float] = None,
    shifts: Optional[np.ndarray] = None,
    rng=None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Scramble the phase spectrum of a signal.

    Args:
        signal: Real signal, rows = time samples, columns = channels
        max_shift: Largest phase shift in radians. Ignored when shifts is given.
        shifts: Precomputed shifts (length L/2 - 1) from an earlier call
        rng: numpy Generator, int seed, or None for fresh entropy

    Returns:
        (scrambled, shifts): scrambled has the even-padded shape of signal;
        shifts is the vector that was applied.

    Raises:
        ArgumentCountError: Neither max_shift nor shifts given
        DomainValidationError: Ill-formed signal or max_shift
        ShapeMismatchError: shifts length does not match the signal
    """
    if max_shift is None and shifts is None:
        raise ArgumentCountError(
            'phase_shift',
            "Need the signal and either an upper bound for the phase shifts "
            "(in radians) or a precomputed shift vector.",
        )

    data = validate_signal(signal)
    n_channels = data.shape[1]
    n_samples = padded_length(data.shape[0])
    n_bins = n_shift_bins(data.shape[0])

    if shifts is not None:
        shifts = validate_shifts(shifts, n_bins, n_samples)
    else:
        limit = validate_max_shift(max_shift)
        rng = np.random.default_rng(rng)
        shifts = rng.random(n_bins) * limit

    if n_channels > 2:
        warnings.warn(
            f"Detected {n_channels} channels. The same phase shifts will be "
            f"applied to every channel.",
            UserWarning,
            stacklevel=2,
        )

    data = pad_to_even(data)
    multiplier = phase_multiplier(shifts, n_samples)

    spectrum = np.fft.fft(data, axis=0)
    shifted = np.fft.ifft(spectrum * multiplier[:, np.newaxis], axis=0)

    logging.getLogger(__name__).debug(
        "phase_shift: %d samples x %d channels, %d bins, max residue %.3g",
        n_samples, n_channels, n_bins, float(np.max(np.abs(shifted.imag), initial=0.0)),
    )

    return np.real(shifted), shifts.copy()
