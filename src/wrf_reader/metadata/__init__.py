"""
WRF Reader Metadata

This package builds and holds the read-only metadata of a collection.
"""

from .attributes import read_global_attributes, read_map_proj
from .pipeline import InitializationResult, build_metadata, resolve_mesh
from .store import MetadataStore

__all__ = [
    "read_global_attributes",
    "read_map_proj",
    "InitializationResult",
    "build_metadata",
    "resolve_mesh",
    "MetadataStore",
]
