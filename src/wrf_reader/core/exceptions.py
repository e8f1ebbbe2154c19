"""
WRF Reader Custom Exception Classes

This module defines all custom exception classes for better error handling
and more informative error messages.
"""

from typing import Optional, Sequence

# ============================================================================
# Base Exception
# ============================================================================

class WRFReaderError(Exception):
    """Base exception class for all WRF Reader related errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        full_message = f"{message}\nDetails: {details}" if details else message
        super().__init__(full_message)

# ============================================================================
# Initialization Errors
# ============================================================================

class InitializationError(WRFReaderError):
    """Errors that abort collection initialization."""

class MissingAttributeError(InitializationError):
    """Required attribute not found."""

    def __init__(self, attribute: str, variable: str = ""):
        where = f" on variable '{variable}'" if variable else ""
        super().__init__(f"Error reading required attribute : {attribute}{where}")
        self.attribute = attribute
        self.variable = variable

class MissingDimensionError(InitializationError):
    """Required dimensions not found."""

    def __init__(self, missing_dimensions: Sequence[str], available_dimensions: Optional[Sequence[str]] = None):
        dims_str = ", ".join(missing_dimensions)
        super().__init__(
            f"Missing dimension: {dims_str}",
            f"Available dimensions: {', '.join(available_dimensions)}" if available_dimensions else None
        )
        self.missing_dimensions = list(missing_dimensions)

class UnsupportedProjectionError(InitializationError):
    """Map projection code not supported."""

    def __init__(self, map_proj: int):
        super().__init__(f"Unsupported MAP_PROJ value : {map_proj}")
        self.map_proj = map_proj

class CoordinateError(InitializationError):
    """Coordinate system related errors."""

    def __init__(self, coord_name: str, issue: str):
        super().__init__(f"Coordinate error in '{coord_name}': {issue}")
        self.coord_name = coord_name

# ============================================================================
# Per-Operation Errors
# ============================================================================

class InvalidHandleError(WRFReaderError):
    """Unknown or already closed variable handle."""

    def __init__(self, handle: int):
        super().__init__(f"Invalid file descriptor : {handle}")
        self.handle = handle

class TimeStepOutOfRangeError(WRFReaderError):
    """Time step beyond the number of steps in the collection."""

    def __init__(self, time_step: int, num_time_steps: int):
        super().__init__(
            f"Time step out of range : {time_step}",
            f"Collection has {num_time_steps} time steps"
        )
        self.time_step = time_step
        self.num_time_steps = num_time_steps

class InvalidFormatError(WRFReaderError):
    """Invalid data format errors."""

    def __init__(self, item: str, expected_format: str, actual: str):
        super().__init__(
            f"Invalid format for {item}: {actual}",
            f"Expected format: {expected_format}"
        )
        self.item = item
        self.expected_format = expected_format
        self.actual = actual

class UnsupportedOperationError(WRFReaderError):
    """Operation not supported for this grid or variable."""

    def __init__(self, operation: str, reason: str):
        super().__init__(f"{operation} not yet supported", reason)
        self.operation = operation

class VariableNotFoundError(WRFReaderError):
    """Variables not found."""

    def __init__(self, missing_variables: Sequence[str], available_variables: Optional[Sequence[str]] = None):
        vars_str = ", ".join(missing_variables)
        super().__init__(
            f"Variables not found: {vars_str}",
            f"Available variables: {', '.join(sorted(available_variables))}" if available_variables else None
        )
        self.missing_variables = list(missing_variables)
        self.available_variables = list(available_variables) if available_variables else None

class ParameterError(WRFReaderError):
    """Parameter validation errors."""

    def __init__(self, parameter: str, value: str, reason: str):
        super().__init__(f"Invalid parameter '{parameter}': {value}", reason)
        self.parameter = parameter
        self.value = value

class NoDataError(WRFReaderError):
    """No data found matching criteria."""

    def __init__(self, criteria: str):
        super().__init__(f"No data found: {criteria}")
        self.criteria = criteria

class NotInitializedError(WRFReaderError):
    """Collection used before a successful initialize()."""

    def __init__(self):
        super().__init__("Data collection is not initialized")

# ============================================================================
# Utility Functions
# ============================================================================

def check_variables_availability(requested: Sequence[str], available: Sequence[str]) -> None:
    """Check if all requested variables are available."""
    missing = [v for v in requested if v not in available]
    if missing:
        raise VariableNotFoundError(missing, available)

def validate_region(name: str, dims: Sequence[int], min_idx: Sequence[int], max_idx: Sequence[int]) -> None:
    """
    Validate an inclusive index region against dimension lengths.

    Args:
        name: Variable name for error messages
        dims: Dimension lengths, same axis order as the region
        min_idx: Inclusive lower corner
        max_idx: Inclusive upper corner

    Raises:
        ParameterError: If the region rank or bounds are invalid
    """
    if len(min_idx) != len(max_idx) or len(min_idx) != len(dims):
        raise ParameterError(
            "region", f"{list(min_idx)}..{list(max_idx)}",
            f"Variable '{name}' has {len(dims)} spatial dimensions"
        )
    for axis, (lo, hi, n) in enumerate(zip(min_idx, max_idx, dims)):
        if lo < 0 or hi < lo or hi >= n:
            raise ParameterError(
                "region", f"{list(min_idx)}..{list(max_idx)}",
                f"Axis {axis} of '{name}' must satisfy 0 <= min <= max < {n}"
            )
