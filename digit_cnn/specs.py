"""
Declarative description of a sequential classifier.

A ModelSpec is an ordered tuple of layer specs (forward-pass order), a
CompileSpec names the optimizer, loss and metrics. Neither holds any framework
objects; ``digit_cnn._pytorch_lightning`` turns them into torch modules.

Shapes are channels-last ``(height, width, channels)`` without the batch axis.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

Shape = Tuple[int, ...]
Pair = Tuple[int, int]

ACTIVATIONS = ("relu", "softmax", "linear")
INITIALIZERS = ("variance_scaling", "glorot_uniform")

OPTIMIZER_CLASSES = {
    "adam": "torch.optim.Adam",
    "sgd": "torch.optim.SGD",
    "rmsprop": "torch.optim.RMSprop",
}
LOSS_CLASSES = {
    "categorical_crossentropy": "digit_cnn._pytorch_lightning.losses.CategoricalCrossentropy",
}
METRIC_CLASSES = {
    "accuracy": "torchmetrics.classification.MulticlassAccuracy",
}
# fraction of correct predictions over all samples, not averaged per class
METRIC_ARGS = {
    "accuracy": {"average": "micro"},
}


def _positive_int(value: Any, name: str) -> int:
    # bool is an int subclass; a stray `true` in a config must not pass as 1
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive int, got {value!r}")
    return value


def _pair(value: Union[int, Tuple[int, int], List[int]], name: str) -> Pair:
    items = [value, value] if isinstance(value, (int, bool)) else list(value)
    if len(items) != 2:
        raise ValueError(f"{name} must be a positive int or a pair of positive ints, got {value!r}")
    return tuple(_positive_int(v, name) for v in items)


def _check_choice(value: str, choices: Tuple[str, ...], name: str) -> None:
    if value not in choices:
        raise ValueError(f"Unknown {name} '{value}'. Expected one of: {', '.join(choices)}")


@dataclass(frozen=True)
class Convolution:
    kernel_size: Pair
    filters: int
    strides: Pair = (1, 1)
    activation: str = "relu"
    kernel_initializer: str = "variance_scaling"
    input_shape: Optional[Shape] = None
    kind: str = field(default="convolution", init=False)

    def __post_init__(self):
        object.__setattr__(self, "kernel_size", _pair(self.kernel_size, "kernel_size"))
        object.__setattr__(self, "strides", _pair(self.strides, "strides"))
        _positive_int(self.filters, "filters")
        if self.input_shape is not None:
            object.__setattr__(self, "input_shape", tuple(_positive_int(d, "input_shape") for d in self.input_shape))
            if len(self.input_shape) != 3:
                raise ValueError(f"input_shape must be (height, width, channels), got {self.input_shape}")
        _check_choice(self.activation, ACTIVATIONS, "activation")
        _check_choice(self.kernel_initializer, INITIALIZERS, "kernel_initializer")


@dataclass(frozen=True)
class Pooling:
    """Max pooling over ``pool_size`` windows."""

    pool_size: Pair = (2, 2)
    strides: Pair = (2, 2)
    kind: str = field(default="pooling", init=False)

    def __post_init__(self):
        object.__setattr__(self, "pool_size", _pair(self.pool_size, "pool_size"))
        object.__setattr__(self, "strides", _pair(self.strides, "strides"))


@dataclass(frozen=True)
class Flatten:
    kind: str = field(default="flatten", init=False)


@dataclass(frozen=True)
class Dense:
    units: int
    kernel_initializer: str = "variance_scaling"
    activation: str = "softmax"
    kind: str = field(default="dense", init=False)

    def __post_init__(self):
        _positive_int(self.units, "units")
        _check_choice(self.activation, ACTIVATIONS, "activation")
        _check_choice(self.kernel_initializer, INITIALIZERS, "kernel_initializer")


LayerSpec = Union[Convolution, Pooling, Flatten, Dense]

LAYER_TYPES = {
    "convolution": Convolution,
    "pooling": Pooling,
    "flatten": Flatten,
    "dense": Dense,
}


def _windowed(size: int, window: int, stride: int) -> int:
    # "valid" padding
    return (size - window) // stride + 1


@dataclass(frozen=True)
class ModelSpec:
    layers: Tuple[LayerSpec, ...]

    def __post_init__(self):
        object.__setattr__(self, "layers", tuple(self.layers))

    def __len__(self) -> int:
        return len(self.layers)

    def __iter__(self) -> Iterator[LayerSpec]:
        return iter(self.layers)

    def __getitem__(self, index: int) -> LayerSpec:
        return self.layers[index]

    @property
    def input_shape(self) -> Optional[Shape]:
        if not self.layers:
            return None
        return getattr(self.layers[0], "input_shape", None)

    def output_shapes(self) -> List[Shape]:
        """
        Infer the output shape of every layer.

        Returns:
            One channels-last shape per layer, batch axis excluded.

        Raises:
            ValueError: If the layers do not form a valid shape pipeline.
        """
        if not self.layers:
            raise ValueError("ModelSpec has no layers")

        shape = self.input_shape
        if shape is None:
            raise ValueError("The first layer must declare input_shape (height, width, channels)")

        shapes: List[Shape] = []
        for index, layer in enumerate(self.layers):
            if index > 0 and getattr(layer, "input_shape", None) is not None:
                raise ValueError(f"Layer {index} ({layer.kind}): only the first layer may declare input_shape")

            if isinstance(layer, (Convolution, Pooling)):
                if len(shape) != 3:
                    raise ValueError(f"Layer {index} ({layer.kind}) expects (height, width, channels) input, got {shape}")
                window = layer.kernel_size if isinstance(layer, Convolution) else layer.pool_size
                height = _windowed(shape[0], window[0], layer.strides[0])
                width = _windowed(shape[1], window[1], layer.strides[1])
                if height < 1 or width < 1:
                    raise ValueError(
                        f"Layer {index} ({layer.kind}) reduces spatial size {shape[:2]} to non-positive ({height}, {width})"
                    )
                channels = layer.filters if isinstance(layer, Convolution) else shape[2]
                shape = (height, width, channels)
            elif isinstance(layer, Flatten):
                size = 1
                for dim in shape:
                    size *= dim
                shape = (size,)
            elif isinstance(layer, Dense):
                if len(shape) != 1:
                    raise ValueError(f"Layer {index} (dense) expects flat input, got {shape}; add a Flatten layer first")
                shape = (layer.units,)
            else:
                raise ValueError(f"Layer {index}: unsupported layer spec {type(layer).__name__}")
            shapes.append(shape)
        return shapes

    @property
    def output_shape(self) -> Shape:
        return self.output_shapes()[-1]


@dataclass(frozen=True)
class OptimizerSpec:
    kind: str = "adam"
    args: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "args", MappingProxyType(dict(self.args)))
        _check_choice(self.kind, tuple(OPTIMIZER_CLASSES), "optimizer")

    @property
    def class_path(self) -> str:
        return OPTIMIZER_CLASSES[self.kind]


@dataclass(frozen=True)
class CompileSpec:
    optimizer: OptimizerSpec = field(default_factory=OptimizerSpec)
    loss: str = "categorical_crossentropy"
    metrics: Tuple[str, ...] = ("accuracy",)

    def __post_init__(self):
        object.__setattr__(self, "metrics", tuple(self.metrics))
        _check_choice(self.loss, tuple(LOSS_CLASSES), "loss")
        for name in self.metrics:
            _check_choice(name, tuple(METRIC_CLASSES), "metric")

    @property
    def loss_class_path(self) -> str:
        return LOSS_CLASSES[self.loss]

    def metric_class_paths(self) -> Dict[str, str]:
        return {name: METRIC_CLASSES[name] for name in self.metrics}
