from digit_cnn.model_builder import build_model, compile_model, default_compile_spec, default_model_spec
from digit_cnn.specs import CompileSpec, Convolution, Dense, Flatten, ModelSpec, OptimizerSpec, Pooling

__all__ = [
    "build_model",
    "compile_model",
    "default_compile_spec",
    "default_model_spec",
    "CompileSpec",
    "Convolution",
    "Dense",
    "Flatten",
    "ModelSpec",
    "OptimizerSpec",
    "Pooling",
]
