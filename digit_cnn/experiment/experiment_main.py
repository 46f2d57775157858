from omegaconf import DictConfig, OmegaConf
import logging
import pytorch_lightning as pl
import torch

from digit_cnn.experiment.setup_logging import setup_logging
from digit_cnn.experiment.spec_loading import compile_spec_from_config, model_spec_from_config
from digit_cnn.experiment.model_summary import summarize
from digit_cnn.model_builder import compile_model


def run_smoke_check(model, batch_size: int):
    """Feed a random channels-last batch through the model; returns the output."""
    logger = logging.getLogger("digitcnn.experiment")

    height, width, channels = model.model_spec.input_shape
    x = torch.rand(batch_size, height, width, channels)

    model.eval()
    with torch.no_grad():
        probs = model(x)

    row_sums = probs.sum(dim=-1)
    logger.info(f"Smoke check: input {tuple(x.shape)} -> output {tuple(probs.shape)}")
    logger.info(f"Row sums: min={row_sums.min().item():.6f}, max={row_sums.max().item():.6f}")
    return probs


def experiment_main(cfg: DictConfig):
    """Experiment main, receives config from main.py"""
    logger = logging.getLogger("digitcnn.experiment")
    setup_logging(cfg)

    logger.info('Running with config:')
    logger.info('============================================================')
    try:
        resolved_config = OmegaConf.to_yaml(cfg, resolve=True)
        logger.info(resolved_config)
    except Exception as e:
        # Print unresolved config first, then reraise the exception
        logger.info(OmegaConf.to_yaml(cfg, resolve=False))
        logger.warning(f"Could not fully resolve config for logging: {e}")
        raise
    logger.info('============================================================')

    pl.seed_everything(cfg.get("seed", 42))

    model_spec = model_spec_from_config(cfg.get("model"))
    compile_spec = compile_spec_from_config(cfg.get("compile"))
    model = compile_model(model_spec, compile_spec)

    logger.info("Model summary:\n" + summarize(model))

    smoke_cfg = cfg.get("smoke_check") or {}
    if smoke_cfg.get("enabled", True):
        run_smoke_check(model, int(smoke_cfg.get("batch_size", 4)))
    else:
        logger.info("Smoke check skipped")

    logger.info("Done!")
    return model
