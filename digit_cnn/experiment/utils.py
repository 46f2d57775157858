"""
Utility functions for experiments.
"""
import importlib


def import_class(dotted_path: str) -> type:
    """Import a class from a dotted path string.

    Args:
        dotted_path: Dotted path to the class (e.g., 'torch.optim.Adam')

    Returns:
        The imported class

    Raises:
        ImportError: If the module cannot be imported
        AttributeError: If the class cannot be found in the module
        ValueError: If the path has no module part

    Example:
        >>> cls = import_class('torch.optim.Adam')
        >>> optimizer = cls(model.parameters())
    """
    if "." not in dotted_path:
        raise ValueError(f"Expected a dotted path like 'package.module.Class', got '{dotted_path}'")
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
