import pytest
import torch

from digit_cnn.experiment.utils import import_class


class TestImportClass:

    def test_imports_class(self):
        assert import_class("torch.optim.Adam") is torch.optim.Adam

    def test_missing_module(self):
        with pytest.raises(ImportError):
            import_class("not_a_package.Thing")

    def test_missing_attribute(self):
        with pytest.raises(AttributeError):
            import_class("torch.optim.NotAnOptimizer")

    def test_not_dotted(self):
        with pytest.raises(ValueError):
            import_class("Adam")
