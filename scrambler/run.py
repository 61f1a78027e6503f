"""
Scrambler Sequencer
===================

Scrambles the audio and video arrays named in a manifest.
Pure orchestration — no computation here.

    1. Load manifest.yaml, validate every parameter and input up front
    2. Resolve the seed (drawn fresh and recorded when not given)
    3. Phase-scramble the signal, warp the frames
    4. Centre the audio against the video when both rates are known
    5. Write scrambled arrays and reproducibility records once both succeed

Inputs are .npy arrays; container decoding/encoding happens elsewhere.

Usage:
    python -m scrambler stimuli/clip01
    python -m scrambler stimuli/clip01 --parallel
    python -m scrambler stimuli/clip01 --output /tmp/out -q
"""

import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from scrambler.core.alignment import check_audio_length, check_frame_count, pad_audio_to_frames
from scrambler.core.parallel import warp_sequence
from scrambler.core.phase_shift import padded_length, phase_shift
from scrambler.io.manifest import (
    get_frames_path,
    get_max_phase_shift,
    get_n_jobs,
    get_output_dir,
    get_seed,
    get_signal_path,
    get_warp_params,
    load_manifest,
)
from scrambler.io.reader import load_array
from scrambler.io.writer import write_array, write_shift_record, write_warp_record
from scrambler.validation import validate_frames, validate_seed, validate_signal


def validate_manifest_paths(manifest: dict) -> List[str]:
    """Check the configured inputs exist before running anything.

    Returns list of errors. Empty list = all paths valid.
    """
    errors = []
    signal_path = get_signal_path(manifest)
    frames_path = get_frames_path(manifest)

    if signal_path is None and frames_path is None:
        errors.append("manifest names neither paths.signal nor paths.frames")
    if signal_path and not Path(signal_path).exists():
        errors.append(f"signal file not found: {signal_path}")
    if frames_path and not Path(frames_path).exists():
        errors.append(f"frames file not found: {frames_path}")

    return errors


def resolve_seeds(seed: Optional[int]) -> Dict[str, int]:
    """
    Root seed plus independent audio and video seeds derived from it.

    A fresh root seed is drawn when none is configured, so every run is
    reproducible from its records.
    """
    seed = validate_seed(seed)
    if seed is None:
        seed = np.random.SeedSequence().entropy
    audio_seed, video_seed = np.random.SeedSequence(int(seed)).generate_state(2)
    return {'seed': int(seed), 'audio': int(audio_seed), 'video': int(video_seed)}


def run(
    data_path: str,
    output_dir: Optional[str] = None,
    parallel: Optional[bool] = None,
    verbose: bool = True,
) -> Dict[str, Any]:
    """
    Scramble the signal and/or frames configured in data_path/manifest.yaml.

    Nothing is written unless every input validates and both transforms
    succeed.

    Args:
        data_path: Directory containing manifest.yaml (or the manifest file)
        output_dir: Override paths.output_dir
        parallel: Override parallel.enabled
        verbose: Print progress

    Returns:
        Summary dict with the seeds and written paths
    """
    manifest = load_manifest(data_path)

    path_errors = validate_manifest_paths(manifest)
    if path_errors:
        msg = "MANIFEST PATH ERRORS:\n" + "\n".join(f"  - {e}" for e in path_errors)
        raise FileNotFoundError(msg)

    if output_dir is not None:
        manifest['paths']['output_dir'] = str(Path(output_dir).resolve())

    if parallel is None:
        parallel = bool(manifest['parallel']['enabled'])

    signal_path = get_signal_path(manifest)
    frames_path = get_frames_path(manifest)

    # All parameters and inputs are validated before any scrambling starts
    max_phase_shift = get_max_phase_shift(manifest) if signal_path else None
    params = get_warp_params(manifest) if frames_path else None
    n_jobs = get_n_jobs(manifest)
    seeds = resolve_seeds(get_seed(manifest))

    name = manifest.get('name') or Path(manifest['_data_dir']).name
    sample_rate = manifest['audio']['sample_rate']
    frame_rate = manifest['video']['frame_rate']

    signal = None
    if signal_path:
        signal = load_array(signal_path)
        if signal.ndim == 1:
            signal = signal[:, np.newaxis]
        signal = validate_signal(signal)

    frames = None
    if frames_path:
        frames = validate_frames(load_array(frames_path))
        duration = manifest['video'].get('duration')
        if duration and frame_rate:
            check_frame_count(duration, frame_rate, frames.shape[0])

    align = signal is not None and frames is not None and bool(sample_rate and frame_rate)
    if align:
        # scrambling pads the signal to an even length first
        check_audio_length(padded_length(signal.shape[0]), frames.shape[0], sample_rate, frame_rate)

    out_dir = get_output_dir(manifest)
    summary: Dict[str, Any] = {'name': name, 'seed': seeds['seed'], 'output_dir': out_dir}

    scrambled = shifts = warped = None

    if signal is not None:
        if verbose:
            print("=" * 70)
            print(f"AUDIO: {name}")
            print(f"Phase scrambling, max shift {max_phase_shift:.4f} rad")
            print("=" * 70)

        scrambled, shifts = phase_shift(signal, max_shift=max_phase_shift, rng=seeds['audio'])
        if align:
            scrambled = pad_audio_to_frames(scrambled, frames.shape[0], sample_rate, frame_rate)

    if frames is not None:
        if verbose:
            print("=" * 70)
            print(f"VIDEO: {name}")
            print(f"Diffeomorphic warp, max distortion {params.max_distortion}, "
                  f"{params.steps} steps ({4 * params.steps} warps per frame)")
            print("=" * 70)

        warped = warp_sequence(
            frames, params,
            parallel=parallel, rng=seeds['video'], n_jobs=n_jobs, verbose=verbose,
        )

    if scrambled is not None:
        summary['audio'] = {
            'signal': write_array(scrambled, out_dir, f"{name}-signal", verbose=verbose),
            'record': write_shift_record(
                shifts, out_dir, name,
                max_phase_shift=max_phase_shift,
                seed=seeds['audio'],
                n_samples=signal.shape[0],
                n_channels=signal.shape[1],
                verbose=verbose,
            ),
        }

    if warped is not None:
        summary['video'] = {
            'frames': write_array(warped, out_dir, f"{name}-frames", verbose=verbose),
            'record': write_warp_record(
                out_dir, name, params, seeds['video'], frames.shape[1:3], verbose=verbose,
            ),
        }

    if verbose:
        print()
        print(f"Done. Seed {seeds['seed']}; outputs in {out_dir}")

    return summary


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Stimulus Scrambler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Scrambles audio (phase) and video (diffeomorphic warp) arrays.

Usage:
  python -m scrambler ~/stimuli/clip01
  python -m scrambler ~/stimuli/clip01 --parallel
  python -m scrambler ~/stimuli/clip01 --output ~/stimuli/scrambled
"""
    )
    parser.add_argument('data_path', help='Path to data directory (must contain manifest.yaml)')
    parser.add_argument('--output', help='Output directory (overrides paths.output_dir)')
    parser.add_argument('--parallel', action='store_true', default=None,
                        help='Warp frames in parallel')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    args = parser.parse_args()

    run(
        data_path=args.data_path,
        output_dir=args.output,
        parallel=args.parallel,
        verbose=not args.quiet,
    )


if __name__ == '__main__':
    main()
