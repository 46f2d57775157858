import logging
import sys
from pathlib import Path

import pytest
import torch
from omegaconf import OmegaConf

# Make the repo root importable when running without `pip install -e .`
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from digit_cnn.model_builder import build_model, default_compile_spec, default_model_spec  # noqa: E402


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def model_spec():
    return default_model_spec()


@pytest.fixture
def compile_spec():
    return default_compile_spec()


@pytest.fixture
def model():
    torch.manual_seed(0)
    return build_model()


@pytest.fixture
def base_cfg(tmp_path):
    """Minimal run config writing logs under tmp_path."""
    return OmegaConf.create({
        "log_level": "INFO",
        "seed": 7,
        "paths": {"log_dir": str(tmp_path / "logs")},
        "model": {"layers": []},
        "compile": {
            "optimizer": {"kind": "adam", "args": {}},
            "loss": "categorical_crossentropy",
            "metrics": ["accuracy"],
        },
        "smoke_check": {"enabled": True, "batch_size": 3},
    })


@pytest.fixture
def restore_root_logging():
    """setup_logging() replaces root handlers; put the originals back afterwards."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            handler.close()
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)
