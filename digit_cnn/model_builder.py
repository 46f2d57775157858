"""
Digit classifier architecture.

CNN: 28x28x1 -> conv5x5(8) -> maxpool2 -> conv5x5(16) -> maxpool2 -> flatten -> 10 (softmax)
Loss: categorical cross-entropy
Optimizer: Adam (framework defaults)
"""
import logging

from digit_cnn.specs import (
    CompileSpec,
    Convolution,
    Dense,
    Flatten,
    ModelSpec,
    OptimizerSpec,
    Pooling,
)
from digit_cnn._pytorch_lightning.lit_model import CompiledClassifier

logger = logging.getLogger("digitcnn.model_builder")

INPUT_SHAPE = (28, 28, 1)
NUM_OUTPUT_CLASSES = 10


def default_model_spec() -> ModelSpec:
    return ModelSpec(layers=(
        Convolution(
            input_shape=INPUT_SHAPE,
            kernel_size=5,
            filters=8,
            strides=1,
            activation="relu",
            kernel_initializer="variance_scaling",
        ),
        Pooling(pool_size=(2, 2), strides=(2, 2)),
        Convolution(
            kernel_size=5,
            filters=16,
            strides=1,
            activation="relu",
            kernel_initializer="variance_scaling",
        ),
        Pooling(pool_size=(2, 2), strides=(2, 2)),
        Flatten(),
        Dense(
            units=NUM_OUTPUT_CLASSES,
            kernel_initializer="variance_scaling",
            activation="softmax",
        ),
    ))


def default_compile_spec() -> CompileSpec:
    return CompileSpec(
        optimizer=OptimizerSpec(kind="adam"),
        loss="categorical_crossentropy",
        metrics=("accuracy",),
    )


def compile_model(model_spec: ModelSpec, compile_spec: CompileSpec) -> CompiledClassifier:
    """
    Build the network described by ``model_spec`` and attach the optimizer, loss
    and metrics from ``compile_spec``.

    Framework errors (e.g. an invalid shape pipeline) propagate unchanged.
    """
    model = CompiledClassifier(model_spec, compile_spec)

    num_params = sum(p.numel() for p in model.net.parameters())
    logger.info(
        "Compiled model: %d layers, output shape %s, %s parameters, optimizer=%s, loss=%s, metrics=%s",
        len(model_spec), model_spec.output_shape, f"{num_params:,}",
        compile_spec.optimizer.kind, compile_spec.loss, list(compile_spec.metrics),
    )
    return model


def build_model() -> CompiledClassifier:
    """Return a freshly initialized, compiled digit classifier."""
    return compile_model(default_model_spec(), default_compile_spec())
