"""
Tests for the scrambler sequencer (manifest in, scrambled arrays + records out).
"""

import sys

import numpy as np
import pytest
import yaml

from scrambler.core.parallel import warp_sequence
from scrambler.core.phase_shift import phase_shift
from scrambler.io.reader import (
    load_array,
    read_shift_record,
    read_warp_record,
    regenerate_warp_fields,
)
from scrambler.io.manifest import load_manifest
from scrambler.run import resolve_seeds, run, validate_manifest_paths
from scrambler.validation import AlignmentError, DomainValidationError, WarpParams

# the package re-exports run(), which shadows the module attribute
run_module = sys.modules['scrambler.run']


def _setup(tmp_path, manifest, signal=None, frames=None):
    if signal is not None:
        np.save(tmp_path / 'signal.npy', signal)
    if frames is not None:
        np.save(tmp_path / 'frames.npy', frames)
    (tmp_path / 'manifest.yaml').write_text(yaml.safe_dump(manifest))
    return tmp_path


@pytest.fixture
def signal():
    return np.random.default_rng(0).standard_normal((41, 2))


@pytest.fixture
def frames():
    return np.random.default_rng(1).random((3, 6, 8, 3))


class TestRun:
    """End-to-end runs on small arrays."""

    def test_scrambles_and_records(self, tmp_path, signal, frames):
        _setup(tmp_path, {
            'name': 'clip',
            'seed': 7,
            'paths': {'signal': 'signal.npy', 'frames': 'frames.npy', 'output_dir': 'out'},
            'audio': {'max_phase_shift': 'pi'},
            'video': {'max_distortion': 6, 'steps': 2},
        }, signal=signal, frames=frames)

        summary = run(str(tmp_path), verbose=False)

        out = tmp_path / 'out'
        assert summary['seed'] == 7
        assert (out / 'scrambled-clip-signal.npy').exists()
        assert (out / 'scrambled-clip-frames.npy').exists()
        assert (out / 'scrambled-clip-shifts.parquet').exists()
        assert (out / 'scrambled-clip-audio.yaml').exists()
        assert (out / 'scrambled-clip-video.yaml').exists()

        scrambled = load_array(str(out / 'scrambled-clip-signal.npy'))
        warped = load_array(str(out / 'scrambled-clip-frames.npy'))
        assert scrambled.shape == (42, 2)
        assert warped.shape == frames.shape

    def test_records_reproduce_outputs(self, tmp_path, signal, frames):
        _setup(tmp_path, {
            'name': 'clip',
            'paths': {'signal': 'signal.npy', 'frames': 'frames.npy'},
            'video': {'max_distortion': 5, 'steps': 3},
        }, signal=signal, frames=frames)

        summary = run(str(tmp_path), verbose=False)

        shifts, _ = read_shift_record(str(summary['audio']['record']))
        again, _ = phase_shift(signal, shifts=shifts)
        np.testing.assert_allclose(again, load_array(str(summary['audio']['signal'])), atol=1e-12)

        record = read_warp_record(str(summary['video']['record']))
        fields = regenerate_warp_fields(record)
        rewarped = warp_sequence(frames, WarpParams(5, 3), fields=fields)
        np.testing.assert_array_equal(rewarped, load_array(str(summary['video']['frames'])))

    def test_same_seed_same_output(self, tmp_path, frames):
        manifest = {'seed': 99, 'paths': {'frames': 'frames.npy'}, 'video': {'max_distortion': 4, 'steps': 2}}
        first_dir = tmp_path / 'a'
        second_dir = tmp_path / 'b'
        first_dir.mkdir()
        second_dir.mkdir()
        _setup(first_dir, manifest, frames=frames)
        _setup(second_dir, manifest, frames=frames)

        first = run(str(first_dir), verbose=False)
        second = run(str(second_dir), verbose=False, parallel=True)

        np.testing.assert_allclose(
            load_array(str(first['video']['frames'])),
            load_array(str(second['video']['frames'])),
        )

    def test_audio_padded_to_video(self, tmp_path, frames):
        short = np.ones((25, 1))
        _setup(tmp_path, {
            'seed': 1,
            'paths': {'signal': 'signal.npy', 'frames': 'frames.npy'},
            'audio': {'sample_rate': 100, 'max_phase_shift': 0},
            'video': {'frame_rate': 10, 'max_distortion': 0, 'steps': 1},
        }, signal=short, frames=frames)

        with pytest.warns(UserWarning, match="Centering"):
            summary = run(str(tmp_path), verbose=False)

        audio = load_array(str(summary['audio']['signal']))
        assert audio.shape == (30, 1)

    def test_mono_vector_signal(self, tmp_path):
        _setup(tmp_path, {'paths': {'signal': 'signal.npy'}}, signal=np.ones(16))
        summary = run(str(tmp_path), verbose=False)

        assert 'video' not in summary
        assert load_array(str(summary['audio']['signal'])).shape == (16, 1)

    def test_verbose_prints(self, tmp_path, frames, capsys):
        _setup(tmp_path, {'paths': {'frames': 'frames.npy'}, 'video': {'max_distortion': 2, 'steps': 1}},
               frames=frames)
        run(str(tmp_path), verbose=True)

        captured = capsys.readouterr()
        assert "VIDEO" in captured.out
        assert "Done." in captured.out


class TestValidation:
    """Inputs are checked before any work."""

    def test_nothing_to_scramble(self, tmp_path):
        _setup(tmp_path, {})
        with pytest.raises(FileNotFoundError, match="neither"):
            run(str(tmp_path), verbose=False)

    def test_missing_input_file(self, tmp_path):
        _setup(tmp_path, {'paths': {'frames': 'missing.npy'}})
        manifest = load_manifest(str(tmp_path))

        errors = validate_manifest_paths(manifest)
        assert len(errors) == 1
        assert 'missing.npy' in errors[0]

    def test_bad_params_fail_before_writing(self, tmp_path, signal, frames):
        _setup(tmp_path, {
            'paths': {'signal': 'signal.npy', 'frames': 'frames.npy', 'output_dir': 'out'},
            'video': {'max_distortion': 3, 'steps': 0},
        }, signal=signal, frames=frames)

        with pytest.raises(DomainValidationError):
            run(str(tmp_path), verbose=False)

        assert not list((tmp_path / 'out').glob('*.npy'))

    def test_bad_frames_leave_no_audio_outputs(self, tmp_path, signal):
        """A frames file that is not a sequence stops the run before the audio is scrambled."""
        _setup(tmp_path, {
            'name': 'c',
            'paths': {'signal': 'signal.npy', 'frames': 'frames.npy', 'output_dir': 'out'},
        }, signal=signal, frames=np.zeros((4, 4)))

        with pytest.raises(DomainValidationError):
            run(str(tmp_path), verbose=False)

        out = tmp_path / 'out'
        assert not out.exists() or not list(out.iterdir())

    def test_long_audio_rejected_before_scrambling(self, tmp_path, frames, monkeypatch):
        def never(*args, **kwargs):
            raise AssertionError("phase scrambling started")

        monkeypatch.setattr(run_module, 'phase_shift', never)
        _setup(tmp_path, {
            'paths': {'signal': 'signal.npy', 'frames': 'frames.npy', 'output_dir': 'out'},
            'audio': {'sample_rate': 100},
            'video': {'frame_rate': 10},
        }, signal=np.ones((50, 1)), frames=frames)

        with pytest.raises(AlignmentError):
            run(str(tmp_path), verbose=False)

        out = tmp_path / 'out'
        assert not out.exists() or not list(out.iterdir())

    @pytest.mark.parametrize("seed", [-1, 2.5, "abc", True])
    def test_bad_seed_rejected(self, tmp_path, frames, seed):
        _setup(tmp_path, {'seed': seed, 'paths': {'frames': 'frames.npy'}}, frames=frames)

        with pytest.raises(DomainValidationError, match="seed"):
            run(str(tmp_path), verbose=False)

    @pytest.mark.parametrize("n_jobs", [0, 1.5, "all"])
    def test_bad_n_jobs_rejected(self, tmp_path, frames, n_jobs):
        _setup(tmp_path, {'paths': {'frames': 'frames.npy'}, 'parallel': {'n_jobs': n_jobs}},
               frames=frames)

        with pytest.raises(DomainValidationError, match="n_jobs"):
            run(str(tmp_path), verbose=False)


class TestSeeds:

    def test_fixed_seed_derivation(self):
        assert resolve_seeds(5) == resolve_seeds(5)

    def test_fresh_seed_drawn(self):
        seeds = resolve_seeds(None)

        assert isinstance(seeds['seed'], int)
        assert seeds['audio'] != seeds['video']

    def test_large_seed_kept_exactly(self):
        seed = 2 ** 100 + 1
        assert resolve_seeds(seed)['seed'] == seed

    def test_negative_seed_rejected(self):
        with pytest.raises(DomainValidationError):
            resolve_seeds(-1)
