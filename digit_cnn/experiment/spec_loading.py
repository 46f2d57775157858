"""
Build ModelSpec / CompileSpec objects from the hydra config.
"""
import logging
from typing import Any, Dict, Optional

from omegaconf import DictConfig, OmegaConf

from digit_cnn.model_builder import default_compile_spec, default_model_spec
from digit_cnn.specs import LAYER_TYPES, CompileSpec, ModelSpec, OptimizerSpec

logger = logging.getLogger("digitcnn.experiment.spec_loading")


def _to_dict(cfg_item: Any) -> Dict[str, Any]:
    if isinstance(cfg_item, DictConfig):
        return OmegaConf.to_container(cfg_item, resolve=True)
    return dict(cfg_item)


def model_spec_from_config(model_cfg: Optional[DictConfig]) -> ModelSpec:
    """
    Create a ModelSpec from ``cfg.model``.

    Accepts:
      - None / missing ``layers``: the default digit classifier architecture
      - ``layers``: list of dicts, each with ``kind`` (convolution, pooling, flatten,
        dense) plus that layer's attributes, in forward-pass order
    """
    if model_cfg is None or not model_cfg.get("layers"):
        logger.info("No layers configured, using the default architecture")
        return default_model_spec()

    layers = []
    for i, layer_cfg in enumerate(model_cfg.layers):
        args = _to_dict(layer_cfg)
        kind = args.pop("kind", None)
        if kind not in LAYER_TYPES:
            raise ValueError(f"cfg.model.layers[{i}].kind must be one of {sorted(LAYER_TYPES)}, got {kind!r}")
        layers.append(LAYER_TYPES[kind](**args))

    model_spec = ModelSpec(layers=tuple(layers))
    logger.info("Loaded model spec with %d layers from config", len(model_spec))
    return model_spec


def compile_spec_from_config(compile_cfg: Optional[DictConfig]) -> CompileSpec:
    """Create a CompileSpec from ``cfg.compile``, falling back to the defaults per key."""
    default = default_compile_spec()
    if compile_cfg is None:
        return default

    optimizer = default.optimizer
    if compile_cfg.get("optimizer") is not None:
        opt_cfg = _to_dict(compile_cfg.optimizer)
        optimizer = OptimizerSpec(kind=opt_cfg.get("kind", "adam"), args=opt_cfg.get("args") or {})

    metrics = compile_cfg.get("metrics")
    return CompileSpec(
        optimizer=optimizer,
        loss=compile_cfg.get("loss", default.loss),
        metrics=tuple(metrics) if metrics is not None else default.metrics,
    )
