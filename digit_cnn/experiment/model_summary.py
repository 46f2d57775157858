"""
Layer-by-layer summary of a compiled model, similar to Keras' ``model.summary()``.
"""
import logging
from typing import List, Tuple

from digit_cnn.specs import Convolution, Dense, ModelSpec


def layer_param_counts(model_spec: ModelSpec) -> List[int]:
    """Number of trainable parameters per layer (weights + biases)."""
    counts = []
    shape = model_spec.input_shape
    for layer, out_shape in zip(model_spec, model_spec.output_shapes()):
        if isinstance(layer, Convolution):
            kh, kw = layer.kernel_size
            counts.append(kh * kw * shape[2] * layer.filters + layer.filters)
        elif isinstance(layer, Dense):
            counts.append(shape[0] * layer.units + layer.units)
        else:
            counts.append(0)
        shape = out_shape
    return counts


def summarize(model) -> str:
    """
    Render the layer table for a CompiledClassifier.

    Returns:
        Multi-line string: one row per layer (index, kind, output shape, params)
        followed by total/trainable parameter counts taken from the torch module.
    """
    logger = logging.getLogger("digitcnn.experiment.model_summary")

    model_spec = model.model_spec
    rows: List[Tuple[str, str, str, str]] = [("#", "Layer", "Output shape", "Params")]
    for i, (layer, shape, count) in enumerate(
        zip(model_spec, model_spec.output_shapes(), layer_param_counts(model_spec))
    ):
        rows.append((str(i), layer.kind, str((None, *shape)), f"{count:,}"))

    widths = [max(len(row[col]) for row in rows) for col in range(4)]
    separator = "-" * (sum(widths) + 3 * 3)
    lines = [separator]
    for n, row in enumerate(rows):
        lines.append(" | ".join(cell.ljust(width) for cell, width in zip(row, widths)))
        if n == 0:
            lines.append(separator)
    lines.append(separator)

    total_params = sum(p.numel() for p in model.parameters())
    trainable_params = sum(p.numel() for p in model.parameters() if p.requires_grad)
    lines.append(f"Total parameters: {total_params:,}")
    lines.append(f"Trainable parameters: {trainable_params:,}")

    expected = sum(layer_param_counts(model_spec))
    if expected != trainable_params:
        logger.warning(f"Parameter count mismatch: spec implies {expected:,}, module has {trainable_params:,}")

    return "\n".join(lines)
