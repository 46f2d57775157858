"""Unit tests for logging setup."""

import logging
import os

from omegaconf import OmegaConf

from digit_cnn.experiment.setup_logging import setup_logging


class TestSetupLogging:

    def test_console_and_file_handlers(self, base_cfg, restore_root_logging):
        log_file = setup_logging(base_cfg)
        root_logger = logging.getLogger()

        assert log_file == os.path.join(base_cfg.paths.log_dir, "digit_cnn.log")
        assert os.path.isfile(log_file)
        assert root_logger.level == logging.INFO
        assert any(isinstance(h, logging.FileHandler) for h in root_logger.handlers)
        assert logging.getLogger("pytorch_lightning").level == logging.INFO

    def test_messages_reach_file(self, base_cfg, restore_root_logging):
        log_file = setup_logging(base_cfg)
        logging.getLogger("digitcnn.test").info("hello from test")
        for handler in logging.getLogger().handlers:
            handler.flush()

        with open(log_file) as f:
            content = f.read()
        assert "| INFO | digitcnn.test | hello from test" in content

    def test_level_and_fallback_file(self, tmp_path, restore_root_logging):
        cfg = OmegaConf.create({"log_level": "debug", "log_file": str(tmp_path / "x" / "run.log")})

        log_file = setup_logging(cfg)

        assert log_file == str(tmp_path / "x" / "run.log")
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_defaults_to_info(self, base_cfg, restore_root_logging):
        base_cfg.log_level = "chatty"
        setup_logging(base_cfg)
        assert logging.getLogger().level == logging.INFO
