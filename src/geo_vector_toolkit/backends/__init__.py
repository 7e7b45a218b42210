"""
Backends exposing a vector geometry library through a narrow interface.
"""

from geo_vector_toolkit.backends.base import (
    RawFeature,
    VectorBackend,
    VectorDataset,
    VectorLayer,
)

__all__ = [
    "RawFeature",
    "VectorBackend",
    "VectorDataset",
    "VectorLayer",
]
