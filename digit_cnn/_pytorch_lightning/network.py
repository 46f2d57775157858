import logging
import math
from typing import Callable, Dict, List

import torch
import torch.nn as nn

from digit_cnn.specs import Convolution, Dense, Flatten, ModelSpec, Pooling

logger = logging.getLogger("digitcnn.network")


class ChannelsLastToFirst(nn.Module):
    """(N, H, W, C) -> (N, C, H, W)"""

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        assert x.dim() == 4, f"Expected input shape (B, H, W, C), got {tuple(x.shape)}"
        return x.permute(0, 3, 1, 2)


def variance_scaling_(weight: torch.Tensor, scale: float = 1.0) -> torch.Tensor:
    """Truncated normal (cut at 2 stddev) with stddev sqrt(scale / fan_in)."""
    # (out, in, *kernel): fan-in is in_features times the receptive field size
    fan_in = weight.shape[1] * weight[0][0].numel()
    std = math.sqrt(scale / max(1, fan_in))
    return nn.init.trunc_normal_(weight, mean=0.0, std=std, a=-2.0 * std, b=2.0 * std)


INITIALIZERS: Dict[str, Callable[[torch.Tensor], torch.Tensor]] = {
    "variance_scaling": variance_scaling_,
    "glorot_uniform": nn.init.xavier_uniform_,
}

ACTIVATIONS: Dict[str, Callable[[], nn.Module]] = {
    "relu": nn.ReLU,
    "softmax": lambda: nn.Softmax(dim=-1),
    "linear": nn.Identity,
}


def _activation(kind: str) -> nn.Module:
    if kind not in ACTIVATIONS:
        raise ValueError(f"Unknown activation '{kind}'")
    return ACTIVATIONS[kind]()


def _init_weights(module: nn.Module, kind: str) -> None:
    if kind not in INITIALIZERS:
        raise ValueError(f"Unknown kernel initializer '{kind}'")
    with torch.no_grad():
        INITIALIZERS[kind](module.weight)
        if module.bias is not None:
            module.bias.zero_()


def build_network(model_spec: ModelSpec) -> nn.Sequential:
    """
    Assemble a ModelSpec into a torch network.

    The network takes channels-last input ``(N, H, W, C)``. Convolution and
    pooling use valid padding, so layer shapes follow ``ModelSpec.output_shapes()``.

    Raises:
        ValueError: If the layers do not form a valid shape pipeline.
    """
    output_shapes = model_spec.output_shapes()
    shape = model_spec.input_shape

    modules: List[nn.Module] = [ChannelsLastToFirst()]
    for layer, out_shape in zip(model_spec, output_shapes):
        if isinstance(layer, Convolution):
            conv = nn.Conv2d(shape[2], layer.filters, kernel_size=layer.kernel_size, stride=layer.strides, padding=0)
            _init_weights(conv, layer.kernel_initializer)
            modules += [conv, _activation(layer.activation)]
        elif isinstance(layer, Pooling):
            modules.append(nn.MaxPool2d(kernel_size=layer.pool_size, stride=layer.strides))
        elif isinstance(layer, Flatten):
            modules.append(nn.Flatten(start_dim=1))
        elif isinstance(layer, Dense):
            linear = nn.Linear(shape[0], layer.units)
            _init_weights(linear, layer.kernel_initializer)
            modules += [linear, _activation(layer.activation)]
        shape = out_shape

    logger.debug("Built network with %d modules for %d layer specs", len(modules), len(model_spec))
    return nn.Sequential(*modules)
