"""Inference engine implementations.

Engines are imported lazily by ``create_inference_engine`` so optional
runtimes are only required when selected.
"""
