"""Tests for the command line entry point."""

import io
import sys

import pytest

from stream_equal.cli import create_parser, main
from stream_equal.config import DEFAULT_CHUNK_SIZE, DEFAULT_TIMEOUT
from stream_equal.main import EXIT_DIFFERENT, EXIT_EQUAL, EXIT_ERROR, build_config


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test default argument values."""
        args = create_parser().parse_args(["a.bin", "b.bin"])

        assert args.first == "a.bin"
        assert args.second == "b.bin"
        assert args.chunk_size == DEFAULT_CHUNK_SIZE
        assert args.first_chunk_size is None
        assert args.timeout == DEFAULT_TIMEOUT
        assert args.insecure is False
        assert args.verbose is False

    def test_build_config(self):
        """Test building RuntimeConfig from arguments."""
        args = create_parser().parse_args(
            ["a", "b", "--chunk-size", "64", "--second-chunk-size", "42", "-k", "-t", "5"]
        )
        config = build_config(args)

        assert config.compare.chunk_sizes() == (64, 42)
        assert config.fetch.verify_ssl is False
        assert config.timeout == 5

    def test_rejects_zero_chunk_size(self):
        """Test that --chunk-size 0 is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["a", "b", "--chunk-size", "0"])
        assert exc_info.value.code == 2

    def test_requires_two_operands(self):
        """Test that a single operand is a usage error."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(["only-one"])


class TestMain:
    """End-to-end runs through main()."""

    def test_identical_files(self, sample_file, tmp_path, sample_payload):
        """Test two identical files read with different buffers."""
        copy = tmp_path / "copy.bin"
        copy.write_bytes(sample_payload)

        code = main([str(sample_file), str(copy), "--first-chunk-size", "64",
                     "--second-chunk-size", "42"])
        assert code == EXIT_EQUAL

    def test_different_files(self, sample_file, text_file):
        """Test two different files."""
        assert main([str(sample_file), str(text_file)]) == EXIT_DIFFERENT

    def test_truncated_copy(self, sample_file, tmp_path, sample_payload):
        """Test a copy missing its last byte."""
        truncated = tmp_path / "truncated.bin"
        truncated.write_bytes(sample_payload[:-1])
        assert main([str(sample_file), str(truncated), "-v"]) == EXIT_DIFFERENT

    def test_missing_file_is_an_error(self, sample_file, tmp_path):
        """Test that a missing file exits with an error."""
        assert main([str(tmp_path / "missing.bin"), str(sample_file)]) == EXIT_ERROR

    def test_stdin_operand(self, monkeypatch, sample_file, sample_payload):
        """Test reading one operand from stdin."""
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(sample_payload)))
        assert main(["-", str(sample_file)]) == EXIT_EQUAL

    def test_stdin_twice_is_an_error(self):
        """Test that stdin cannot be both operands."""
        assert main(["-", "-"]) == EXIT_ERROR
