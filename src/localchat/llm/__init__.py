from .base import InferenceEngine, InferenceError, ModelNotFoundError
from .catalog import DEFAULT_MODEL, MODEL_CATALOG, ModelDescriptor, get_model, list_models
from .factory import create_inference_engine

__all__ = [
    "DEFAULT_MODEL",
    "MODEL_CATALOG",
    "InferenceEngine",
    "InferenceError",
    "ModelDescriptor",
    "ModelNotFoundError",
    "create_inference_engine",
    "get_model",
    "list_models",
]
