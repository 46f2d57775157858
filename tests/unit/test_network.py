"""Unit tests for turning a ModelSpec into torch modules."""

import math

import pytest
import torch
import torch.nn as nn

from digit_cnn.specs import Convolution, Dense, Flatten, ModelSpec, Pooling
from digit_cnn._pytorch_lightning.network import ChannelsLastToFirst, build_network, variance_scaling_


class TestBuildNetwork:
    """Test suite for build_network()."""

    def test_module_sequence(self, model_spec):
        net = build_network(model_spec)

        assert [type(m) for m in net] == [
            ChannelsLastToFirst,
            nn.Conv2d, nn.ReLU,
            nn.MaxPool2d,
            nn.Conv2d, nn.ReLU,
            nn.MaxPool2d,
            nn.Flatten,
            nn.Linear, nn.Softmax,
        ]

    def test_layer_hyperparameters(self, model_spec):
        net = build_network(model_spec)
        conv1, conv2 = net[1], net[4]

        assert (conv1.in_channels, conv1.out_channels) == (1, 8)
        assert (conv2.in_channels, conv2.out_channels) == (8, 16)
        for conv in (conv1, conv2):
            assert conv.kernel_size == (5, 5)
            assert conv.stride == (1, 1)
            assert conv.padding == (0, 0)
        for pool in (net[3], net[6]):
            assert pool.kernel_size == (2, 2)
            assert pool.stride == (2, 2)
        assert (net[8].in_features, net[8].out_features) == (256, 10)

    def test_biases_start_at_zero(self, model_spec):
        net = build_network(model_spec)
        for module in net:
            if isinstance(module, (nn.Conv2d, nn.Linear)):
                assert torch.count_nonzero(module.bias) == 0

    def test_channels_last_forward(self):
        spec = ModelSpec(layers=(
            Convolution(kernel_size=3, filters=2, input_shape=(6, 5, 3), activation="linear"),
            Pooling(pool_size=2, strides=1),
            Flatten(),
            Dense(units=4, activation="linear", kernel_initializer="glorot_uniform"),
        ))
        net = build_network(spec)

        out = net(torch.rand(7, 6, 5, 3))

        assert out.shape == (7, 4)

    def test_rejects_channels_first_rank(self, model_spec):
        net = build_network(model_spec)
        with pytest.raises(AssertionError):
            net(torch.rand(2, 28, 28))

    def test_invalid_pipeline_propagates(self):
        spec = ModelSpec(layers=(Flatten(), Dense(units=10)))
        with pytest.raises(ValueError, match="input_shape"):
            build_network(spec)


class TestVarianceScaling:

    def test_truncated_at_two_stddev(self):
        torch.manual_seed(0)
        weight = torch.empty(64, 16, 5, 5)
        variance_scaling_(weight)

        std = math.sqrt(1.0 / (16 * 5 * 5))
        assert weight.abs().max().item() <= 2 * std + 1e-6
        # truncation at 2 sigma shrinks the stddev to ~0.88 sigma
        assert weight.std().item() == pytest.approx(0.88 * std, rel=0.1)

    def test_linear_fan_in(self):
        torch.manual_seed(0)
        weight = torch.empty(10, 256)
        variance_scaling_(weight)

        assert weight.abs().max().item() <= 2 * math.sqrt(1.0 / 256) + 1e-6

    def test_conv_fan_in_uses_receptive_field(self):
        torch.manual_seed(0)
        weight = torch.empty(256, 3, 2, 2)
        variance_scaling_(weight)

        std = math.sqrt(1.0 / (3 * 2 * 2))
        assert weight.abs().max().item() <= 2 * std + 1e-6
        assert weight.abs().max().item() > 1.5 * std
