import logging
import os

from omegaconf import DictConfig

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(cfg: DictConfig) -> str:
    """Setup console and file logging based on the config.

    Returns:
        Path of the log file.
    """
    # Configure Python logging based on config, with INFO as default
    log_level_str = str(cfg.get("log_level", "INFO")).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    # Clear existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # File handler - use paths from config if available, otherwise fallback
    if "paths" in cfg and "log_dir" in cfg.paths:
        log_file = os.path.join(cfg.paths.log_dir, "digit_cnn.log")
    else:
        log_file = cfg.get("log_file", "./logs/digit_cnn.log")

    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # Also configure PyTorch Lightning's internal logging
    logging.getLogger("pytorch_lightning").setLevel(log_level)

    logger = logging.getLogger("digitcnn.experiment.setup_logging")
    logger.info(f"Log level set to: {log_level_str}")
    logger.info(f"Logging to console and file: {log_file}")

    return log_file
