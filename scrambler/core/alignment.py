"""
Audio/Video Alignment
=====================

Bookkeeping that pairs a scrambled signal with a warped frame sequence.

When the streams cover different durations the shorter audio is centred
against the video with equal silence on either side. Start-time metadata
is not available at this level, so centring is the best guess for most
clips. Video that is shorter than its audio is rejected.
"""

import math
import warnings

import numpy as np

from scrambler.validation import AlignmentError, DomainValidationError, validate_signal


def samples_per_frame(sample_rate: float, frame_rate: float) -> float:
    """Audio samples accompanying one video frame."""
    if not (sample_rate and sample_rate > 0) or not (frame_rate and frame_rate > 0):
        raise DomainValidationError(
            f"sample_rate and frame_rate must be positive, got {sample_rate} and {frame_rate}"
        )
    return float(sample_rate) / float(frame_rate)


def check_audio_length(n_samples: int, n_frames: int, sample_rate: float, frame_rate: float) -> float:
    """
    Reject audio that runs one or more whole frames past the video.

    Returns:
        Length of the audio in frames

    Raises:
        AlignmentError: Video has at least one frame fewer than the audio
    """
    audio_frames = n_samples / samples_per_frame(sample_rate, frame_rate)
    if audio_frames >= n_frames + 1:
        raise AlignmentError(
            f"Detected fewer video frames ({n_frames}) than audio frames "
            f"({audio_frames:.2f}); padding video is not supported."
        )
    return audio_frames


def pad_audio_to_frames(
    signal: np.ndarray,
    n_frames: int,
    sample_rate: float,
    frame_rate: float,
) -> np.ndarray:
    """
    Centre-pad audio with zeros so it spans exactly n_frames of video.

    A trailing remainder of less than one frame (e.g. the zero row added
    before phase scrambling) is trimmed.

    Args:
        signal: Audio, rows = samples, columns = channels
        n_frames: Number of video frames
        sample_rate: Audio sample rate (Hz)
        frame_rate: Video frame rate (frames/s)

    Returns:
        Audio with round(n_frames * samples_per_frame) rows

    Raises:
        AlignmentError: Video has at least one frame fewer than the audio
    """
    data = validate_signal(signal)
    per_frame = samples_per_frame(sample_rate, frame_rate)

    n_samples = data.shape[0]
    needed = int(round(n_frames * per_frame))
    audio_frames = check_audio_length(n_samples, n_frames, sample_rate, frame_rate)

    if n_samples >= needed:
        return data[:needed]

    warnings.warn(
        f"Detected mismatch between number of video frames ({n_frames}) and audio "
        f"frames ({audio_frames:.2f}). Centering the audio against the video.",
        UserWarning,
        stacklevel=2,
    )

    missing = needed - n_samples
    front = np.zeros((math.ceil(missing / 2), data.shape[1]))
    back = np.zeros((missing // 2, data.shape[1]))
    return np.vstack([front, data, back])


def audio_for_frame(
    signal: np.ndarray,
    frame_index: int,
    sample_rate: float,
    frame_rate: float,
) -> np.ndarray:
    """Audio chunk played with frame `frame_index` (0-based)."""
    per_frame = samples_per_frame(sample_rate, frame_rate)
    start = int(round(frame_index * per_frame))
    stop = int(round((frame_index + 1) * per_frame))
    return np.asarray(signal)[start:stop]


def check_frame_count(duration: float, frame_rate: float, n_frames: int) -> bool:
    """
    Check that duration * frame_rate agrees with the decoded frame count.

    A mismatch usually means variable frame rate video, which causes
    audio/video drift. Warns and returns False on mismatch.
    """
    expected = round(duration * frame_rate)
    if expected != n_frames:
        warnings.warn(
            f"The calculated number of frames ({expected}) does not match the actual "
            f"number of frames ({n_frames}). This could be numerical error or variable "
            f"frame rate video, which can cause audio/video sync problems. Consider "
            f"converting to a constant frame rate first.",
            UserWarning,
            stacklevel=2,
        )
        return False
    return True
