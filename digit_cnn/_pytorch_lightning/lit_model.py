from typing import Any, Dict

import torch
import pytorch_lightning as pl

from digit_cnn.experiment.utils import import_class
from digit_cnn.specs import METRIC_ARGS, CompileSpec, ModelSpec
from digit_cnn._pytorch_lightning.network import build_network


class CompiledClassifier(pl.LightningModule):
    """Lightning wrapper binding a ModelSpec network to its optimizer, loss and metrics."""

    def __init__(self, model_spec: ModelSpec, compile_spec: CompileSpec) -> None:
        super().__init__()
        self.model_spec = model_spec
        self.compile_spec = compile_spec
        self.num_classes = model_spec.output_shape[-1]

        self.net = build_network(model_spec)
        self.loss_fn = self._create_loss(compile_spec)

        self._create_metrics(compile_spec)


    # ----- Lightning required methods -----

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.net(x)

    def training_step(self, batch, _):
        return self._step(batch, "train")

    def validation_step(self, batch, _):
        self._step(batch, "val")

    def test_step(self, batch, _):
        self._step(batch, "test")

    def predict_step(self, batch, _):
        x = batch[0] if isinstance(batch, (list, tuple)) else batch
        return self(x)

    def on_train_epoch_end(self):
        self._compute_and_log_metrics("train")

    def on_validation_epoch_end(self):
        self._compute_and_log_metrics("val")

    def on_test_epoch_end(self):
        self._compute_and_log_metrics("test")

    def configure_optimizers(self):
        return self._create_optimizer(self.parameters())

    # ----- Core step -----

    def _step(self, batch, stage: str):

        if isinstance(batch, (list, tuple)) and len(batch) >= 2:
            x, y = batch[0], batch[1]
        else:
            raise ValueError(f"Unsupported batch format: {type(batch)}")

        outputs = self(x)
        loss = self.loss_fn(outputs, y)
        self.log(f"{stage}/loss", loss, prog_bar=True)

        # Update metrics (accumulate, don't log yet)
        self._update_metrics(outputs, y, stage)

        return loss

    # ----- factories -----

    def _create_loss(self, compile_spec: CompileSpec):
        cls = import_class(compile_spec.loss_class_path)
        return cls()

    def _create_metrics(self, compile_spec: CompileSpec) -> None:
        """Setup one MetricCollection per stage so epoch values don't mix."""
        from torchmetrics import MetricCollection

        for stage in ["train", "val", "test"]:
            stage_metrics: Dict[str, Any] = {}
            for name, cls_path in compile_spec.metric_class_paths().items():
                cls = import_class(cls_path)
                stage_metrics[name] = cls(num_classes=self.num_classes, **METRIC_ARGS.get(name, {}))

            # Register MetricCollection as a module attribute
            if stage_metrics:
                setattr(self, f"{stage}_metrics", MetricCollection(stage_metrics))

    def _update_metrics(self, outputs: torch.Tensor, targets: torch.Tensor, stage: str):
        """Update (accumulate) metrics for the given stage without logging."""
        metrics_collection = getattr(self, f"{stage}_metrics", None)
        if metrics_collection is None:
            return
        # One-hot targets -> class indices
        if targets.dim() == outputs.dim():
            targets = targets.argmax(dim=-1)
        metrics_collection.update(outputs, targets)

    def _compute_and_log_metrics(self, stage: str):
        """Compute final metric values and log them at epoch end."""
        metrics_collection = getattr(self, f"{stage}_metrics", None)
        if metrics_collection is None:
            return

        metric_values = metrics_collection.compute()
        for metric_name, metric_value in metric_values.items():
            self.log(f"{stage}/{metric_name}", metric_value)

        # Reset metrics for next epoch
        metrics_collection.reset()

    def _create_optimizer(self, parameters):
        # Empty args keep the framework's default hyperparameters
        optimizer_spec = self.compile_spec.optimizer
        cls = import_class(optimizer_spec.class_path)
        return cls(parameters, **optimizer_spec.args)
