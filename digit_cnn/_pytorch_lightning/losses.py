import torch
import torch.nn as nn
import torch.nn.functional as F


class CategoricalCrossentropy(nn.Module):
    """
    Cross-entropy between one-hot targets and predicted class probabilities.

    Unlike ``torch.nn.CrossEntropyLoss`` this expects probabilities (the output of
    a softmax layer), not logits. Predictions are clipped to ``[eps, 1 - eps]``
    before the log. Integer class-index targets are one-hot encoded.
    """

    def __init__(self, eps: float = 1e-7) -> None:
        super().__init__()
        self.eps = eps

    def forward(self, probs: torch.Tensor, target: torch.Tensor) -> torch.Tensor:
        if target.dim() == probs.dim() - 1:
            target = F.one_hot(target.long(), num_classes=probs.shape[-1])
        if target.shape != probs.shape:
            raise ValueError(f"Target shape {tuple(target.shape)} does not match predictions {tuple(probs.shape)}")
        target = target.to(probs.dtype)
        probs = probs.clamp(self.eps, 1.0 - self.eps)
        return -(target * probs.log()).sum(dim=-1).mean()
