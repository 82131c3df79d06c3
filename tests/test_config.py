"""Tests for backend selection and logging setup."""

import logging

import pytest

from flowdiag import config
from flowdiag.config import get_backend, init_taichi
from flowdiag.logging_config import setup_logging


class TestBackend:
    """Tests for backend selection."""

    @pytest.mark.parametrize("name", ["cpu", "CPU", "cuda", "vulkan"])
    def test_env_override(self, monkeypatch, name):
        monkeypatch.setenv("FLOWDIAG_BACKEND", name)
        assert get_backend() == name.lower()

    def test_invalid_env(self, monkeypatch):
        monkeypatch.setenv("FLOWDIAG_BACKEND", "tpu")
        with pytest.raises(ValueError, match="Invalid FLOWDIAG_BACKEND"):
            get_backend()

    @pytest.mark.parametrize("has_gpu, expected", [(True, "cuda"), (False, "cpu")])
    def test_auto_detection(self, monkeypatch, has_gpu, expected):
        monkeypatch.delenv("FLOWDIAG_BACKEND", raising=False)
        monkeypatch.setattr(config, "_has_cuda_device", lambda: has_gpu)
        assert get_backend() == expected

    def test_missing_nvidia_smi_means_no_gpu(self, monkeypatch):
        def missing(*args, **kwargs):
            raise FileNotFoundError("nvidia-smi")

        monkeypatch.setattr(config.subprocess, "run", missing)
        assert config._has_cuda_device() is False

    def test_unknown_backend_argument(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            init_taichi(backend="tpu")


class TestLogging:
    """Tests for setup_logging."""

    @pytest.fixture
    def package_logger(self):
        logger = logging.getLogger("flowdiag")
        yield logger
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)

    def test_repeated_setup_does_not_duplicate(self, package_logger):
        setup_logging()
        setup_logging(logging.DEBUG)
        assert len(package_logger.handlers) == 1
        assert package_logger.level == logging.DEBUG

    def test_log_file(self, package_logger, tmp_path):
        log_file = tmp_path / "flowdiag.log"
        setup_logging(log_file=str(log_file))
        logging.getLogger("flowdiag.kernels").info("hello")
        for handler in package_logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()
        for handler in package_logger.handlers:
            handler.close()
