"""
Tests for manifest loading and reproducibility records.
"""

import math

import numpy as np
import pytest
import yaml

from scrambler.core.diffeomorphic import diffeomorphic
from scrambler.core.displacement import generate_warp_fields
from scrambler.core.phase_shift import phase_shift
from scrambler.io.manifest import (
    DEFAULTS,
    get_frames_path,
    get_max_phase_shift,
    get_n_jobs,
    get_seed,
    get_signal_path,
    get_warp_params,
    load_manifest,
    parse_phase_limit,
)
from scrambler.io.reader import (
    load_array,
    read_shift_record,
    read_warp_record,
    regenerate_warp_fields,
)
from scrambler.io.writer import write_array, write_shift_record, write_warp_record
from scrambler.validation import DomainValidationError, WarpParams


def _write_manifest(directory, content):
    path = directory / 'manifest.yaml'
    path.write_text(yaml.safe_dump(content))
    return path


class TestManifest:
    """manifest.yaml parsing."""

    def test_defaults_filled_in(self, tmp_path):
        _write_manifest(tmp_path, {'paths': {'frames': 'frames.npy'}})
        manifest = load_manifest(str(tmp_path))

        assert manifest['video']['max_distortion'] == DEFAULTS['video']['max_distortion']
        assert manifest['video']['steps'] == DEFAULTS['video']['steps']
        assert manifest['paths']['output_dir'] == 'output'
        assert manifest['_data_dir'] == str(tmp_path)
        assert get_frames_path(manifest) == str(tmp_path / 'frames.npy')
        assert get_signal_path(manifest) is None

    def test_accepts_yaml_file(self, tmp_path):
        path = _write_manifest(tmp_path, {'video': {'max_distortion': 5, 'steps': 2}})
        manifest = load_manifest(str(path))

        assert get_warp_params(manifest) == WarpParams(5, 2)

    def test_missing_manifest(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_manifest(str(tmp_path))

    def test_invalid_warp_params(self, tmp_path):
        _write_manifest(tmp_path, {'video': {'max_distortion': -4}})
        manifest = load_manifest(str(tmp_path))

        with pytest.raises(DomainValidationError):
            get_warp_params(manifest)

    def test_default_phase_limit_is_two_pi(self, tmp_path):
        _write_manifest(tmp_path, {})
        manifest = load_manifest(str(tmp_path))

        assert get_max_phase_shift(manifest) == pytest.approx(2 * math.pi)

    def test_seed_and_workers(self, tmp_path):
        _write_manifest(tmp_path, {'seed': 12, 'parallel': {'n_jobs': -1}})
        manifest = load_manifest(str(tmp_path))

        assert get_seed(manifest) == 12
        assert get_n_jobs(manifest) == -1

    def test_invalid_seed(self, tmp_path):
        _write_manifest(tmp_path, {'seed': -1})
        manifest = load_manifest(str(tmp_path))

        with pytest.raises(DomainValidationError, match="seed"):
            get_seed(manifest)


class TestPhaseLimit:
    """Phase limits may be numbers or pi expressions."""

    @pytest.mark.parametrize("expr,expected", [
        ("2*pi", 2 * math.pi),
        ("pi/4", math.pi / 4),
        (" -pi + 2 * pi ", math.pi),
        ("(1 + 1) * 0.5", 1.0),
        ("2**3", 8.0),
        (1.5, 1.5),
        (3, 3.0),
    ])
    def test_valid(self, expr, expected):
        assert parse_phase_limit(expr) == pytest.approx(expected)

    @pytest.mark.parametrize("expr", [
        "__import__('os')",
        "tau",
        "pi/0",
        "2*",
        "[1, 2]",
        [1, 2],
        None,
    ])
    def test_invalid(self, expr):
        with pytest.raises(DomainValidationError):
            parse_phase_limit(expr)


class TestShiftRecord:
    """Audio shifts persisted and read back."""

    def test_round_trip_reproduces_audio(self, tmp_path):
        signal = np.random.default_rng(0).standard_normal((99, 2))
        scrambled, shifts = phase_shift(signal, max_shift=math.pi, rng=4)

        record_path = write_shift_record(
            shifts, str(tmp_path), 'clip',
            max_phase_shift=math.pi, seed=4, n_samples=99, n_channels=2,
        )
        loaded, record = read_shift_record(str(record_path))

        np.testing.assert_array_equal(loaded, shifts)
        assert record['seed'] == 4
        assert record['n_samples'] == 99
        assert record['n_shifts'] == 49
        assert record['max_phase_shift'] == pytest.approx(math.pi)
        assert (tmp_path / record['shifts_file']).exists()

        again, _ = phase_shift(signal, shifts=loaded)
        np.testing.assert_allclose(again, scrambled, atol=1e-12)

    def test_file_names(self, tmp_path):
        write_shift_record(np.zeros(3), str(tmp_path), 'movie')

        assert (tmp_path / 'scrambled-movie-shifts.parquet').exists()
        assert (tmp_path / 'scrambled-movie-audio.yaml').exists()


class TestWarpRecord:
    """Video warp persisted through its seed."""

    def test_regenerated_fields_match(self, tmp_path):
        params = WarpParams(7, 3)
        record_path = write_warp_record(str(tmp_path), 'clip', params, seed=2024, frame_shape=(6, 9))
        record = read_warp_record(str(record_path))

        assert record['frame_shape'] == [6, 9]
        assert record['max_distortion'] == 7

        fields = regenerate_warp_fields(record)
        expected = generate_warp_fields(12, 18, params, rng=2024)
        np.testing.assert_array_equal(fields.f.y, expected.f.y)

    def test_regenerated_fields_reproduce_warp(self, tmp_path):
        frame = np.random.default_rng(1).random((6, 9, 3))
        params = WarpParams(7, 3)
        original = diffeomorphic(frame, params, rng=55)

        record_path = write_warp_record(str(tmp_path), 'clip', params, seed=55, frame_shape=frame.shape)
        fields = regenerate_warp_fields(read_warp_record(str(record_path)))

        np.testing.assert_array_equal(diffeomorphic(frame, params, fields=fields), original)

    def test_record_without_seed(self):
        with pytest.raises(DomainValidationError):
            regenerate_warp_fields({'seed': None, 'max_distortion': 1, 'steps': 1, 'frame_shape': [2, 2]})


class TestArrays:

    def test_write_and_load(self, tmp_path):
        array = np.arange(12.0).reshape(3, 4)
        path = write_array(array, str(tmp_path), 'clip-signal')

        assert path.name == 'scrambled-clip-signal.npy'
        np.testing.assert_array_equal(load_array(str(path)), array)

    def test_missing_array(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_array(str(tmp_path / 'nope.npy'))
