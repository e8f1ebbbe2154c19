"""
WRF Reader Utilities

This package provides summary functions for initialized collections.
"""

from .info import (
    get_collection_info,
    get_variables_by_mesh,
    print_collection_info,
)

__all__ = [
    "get_collection_info",
    "get_variables_by_mesh",
    "print_collection_info",
]
