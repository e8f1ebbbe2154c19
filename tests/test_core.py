"""Core type, exception and logging configuration tests."""

import logging

import numpy as np
import pytest

from wrf_reader.core.core_types import (
    Attribute, CollectionOptions, Dimension, GridLocation, Mesh, make_attributes,
)
from wrf_reader.core.exceptions import (
    InitializationError, MissingAttributeError, MissingDimensionError, ParameterError,
    UnsupportedProjectionError, VariableNotFoundError, WRFReaderError,
    check_variables_availability, validate_region,
)
from wrf_reader.core.logging_config import (
    PACKAGE_LOGGER, get_logger, set_log_level, setup_logging,
)


@pytest.fixture
def restore_package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate

# ============================================================================
# Types
# ============================================================================

def test_attribute_from_raw():
    assert Attribute.from_raw("a", np.float32(1.5)).values == (1.5,)
    assert Attribute.from_raw("b", np.array([1, 2], dtype=np.int32)).values == (1, 2)
    assert Attribute.from_raw("c", b"text").values == "text"
    assert Attribute.from_raw("d", np.array([b"a", b"b"], dtype="S1")).values == "ab"

    assert Attribute("x", (1, 2)).xtype == "long"
    assert Attribute("x", (1.0,)).xtype == "double"
    assert Attribute("x", "s").xtype == "text"
    assert Attribute("x", (2.7,)).as_longs() == (2,)
    assert Attribute("x", "s").as_doubles() is None


def test_make_attributes_sorted():
    atts = make_attributes({"units": "K", "description": "d", "FieldType": 104})
    assert [a.name for a in atts] == ["FieldType", "description", "units"]


def test_mesh_invariant():
    with pytest.raises(ValueError):
        Mesh("m", ("west_east", "south_north"), ("XLONG",))
    mesh = Mesh.from_dims(["west_east", "south_north"], ["XLONG", "XLAT"])
    assert mesh.name == "west_eastxsouth_north"
    assert mesh.topology_dim == 2
    assert mesh.location == GridLocation.NODE


def test_dimension_length_non_negative():
    assert Dimension("Time", 0).length == 0
    with pytest.raises(ValueError):
        Dimension("Time", -1)


def test_collection_options_validation():
    assert CollectionOptions(chunks={"Time": 1}).chunks == {"Time": 1}
    with pytest.raises(ValueError):
        CollectionOptions(chunks={"Time": 0})
    with pytest.raises(ValueError):
        CollectionOptions(time_dim="")

# ============================================================================
# Exceptions
# ============================================================================

def test_exception_hierarchy():
    for exc in (MissingAttributeError("DX"), MissingDimensionError(["Time"]),
                UnsupportedProjectionError(5)):
        assert isinstance(exc, InitializationError)
        assert isinstance(exc, WRFReaderError)
    assert not isinstance(ParameterError("p", "v", "r"), InitializationError)


def test_exception_messages():
    assert str(MissingAttributeError("DX")) == "Error reading required attribute : DX"
    err = VariableNotFoundError(["Q"], ["T", "P"])
    assert err.missing_variables == ["Q"]
    assert "Available variables: P, T" in str(err)


def test_check_variables_availability():
    check_variables_availability(["T"], ["T", "P"])
    with pytest.raises(VariableNotFoundError):
        check_variables_availability(["T", "Q"], ["T", "P"])


def test_validate_region():
    validate_region("T", [4, 3], [0, 0], [3, 2])
    validate_region("Time", [], [], [])
    with pytest.raises(ParameterError):
        validate_region("T", [4, 3], [0], [3])
    with pytest.raises(ParameterError):
        validate_region("T", [4, 3], [0, -1], [3, 2])

# ============================================================================
# Logging
# ============================================================================

def test_package_logger_is_quiet_by_default():
    logger = logging.getLogger(PACKAGE_LOGGER)
    assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)
    assert get_logger("io.collection").name == "wrf_reader.io.collection"


def test_setup_logging(restore_package_logger, tmp_path):
    log_file = tmp_path / "logs" / "wrf.log"
    logger = setup_logging(level="DEBUG", log_file=log_file)
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2

    get_logger("test").debug("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "hello" in log_file.read_text()


def test_set_log_level(restore_package_logger):
    set_log_level("ERROR")
    assert restore_package_logger.level == logging.ERROR
