"""
WRF Reader Metadata Store

Read-only catalogue of dimensions, coordinate variables, data variables and
meshes produced by the initialization pipeline. All lookups return None (or
an empty list) for unknown names rather than raising.
"""

from dataclasses import asdict
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..core.core_types import (
    Attribute, BaseVariable, CoordinateVariable, DataVariable, Dimension,
    GlobalAttributes, Mesh,
)

AttributeResult = Union[str, Tuple[float, ...], Tuple[int, ...]]


class MetadataStore:
    """
    Immutable metadata for one initialized collection.

    Mappings are keyed by name and iterate in sorted order, so two stores
    built from the same inputs are identical.
    """

    def __init__(
        self,
        dimensions: Mapping[str, Dimension],
        coord_vars: Mapping[str, CoordinateVariable],
        data_vars: Mapping[str, DataVariable],
        meshes: Mapping[str, Mesh],
        global_attributes: GlobalAttributes,
        global_atts: Tuple[Attribute, ...] = (),
        map_projection: str = "",
    ):
        self._dimensions = MappingProxyType({k: dimensions[k] for k in sorted(dimensions)})
        self._coord_vars = MappingProxyType({k: coord_vars[k] for k in sorted(coord_vars)})
        self._data_vars = MappingProxyType({k: data_vars[k] for k in sorted(data_vars)})
        self._meshes = MappingProxyType({k: meshes[k] for k in sorted(meshes)})
        self._global_attributes = global_attributes
        self._global_atts = tuple(global_atts)
        self._map_projection = map_projection

    # ------------------------------------------------------------------
    # Dimensions and meshes
    # ------------------------------------------------------------------

    def get_dimension(self, name: str) -> Optional[Dimension]:
        return self._dimensions.get(name)

    def get_dimension_names(self) -> List[str]:
        return list(self._dimensions)

    def get_mesh(self, name: str) -> Optional[Mesh]:
        return self._meshes.get(name)

    def get_mesh_names(self) -> List[str]:
        return list(self._meshes)

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def get_coord_var_info(self, name: str) -> Optional[CoordinateVariable]:
        return self._coord_vars.get(name)

    def get_data_var_info(self, name: str) -> Optional[DataVariable]:
        return self._data_vars.get(name)

    def get_base_var_info(self, name: str) -> Optional[BaseVariable]:
        """Coordinate variable if one exists with this name, else data variable."""
        return self._coord_vars.get(name) or self._data_vars.get(name)

    def get_coord_var_names(self) -> List[str]:
        return list(self._coord_vars)

    def get_data_var_names(self) -> List[str]:
        return list(self._data_vars)

    def is_coord_var(self, name: str) -> bool:
        return name in self._coord_vars

    def is_data_var(self, name: str) -> bool:
        return name in self._data_vars

    def get_var_dim_names(self, name: str, spatial: bool = True) -> Optional[List[str]]:
        """
        Dimension names of a variable, fastest-varying first.

        The time dimension, when present and ``spatial`` is False, is last.
        """
        cvar = self._coord_vars.get(name)
        if cvar is not None:
            dims = list(cvar.dim_names)
            time_dim = cvar.time_dim_name
        else:
            dvar = self._data_vars.get(name)
            if dvar is None:
                return None
            dims = list(self._meshes[dvar.mesh].dim_names)
            time_coord = self._coord_vars.get(dvar.time_coord_var) if dvar.time_coord_var else None
            time_dim = time_coord.time_dim_name if time_coord else ""

        if not spatial and time_dim:
            dims.append(time_dim)
        return dims

    def get_var_dim_lens(self, name: str, spatial: bool = True) -> Optional[List[int]]:
        dims = self.get_var_dim_names(name, spatial)
        if dims is None:
            return None
        return [self._dimensions[d].length for d in dims]

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def _attribute(self, varname: str, attname: str) -> Optional[Attribute]:
        if varname == "":
            for att in self._global_atts:
                if att.name == attname:
                    return att
            return None
        var = self.get_base_var_info(varname)
        return var.get_attribute(attname) if var else None

    def get_att(self, varname: str, attname: str, kind: str = "double") -> Optional[AttributeResult]:
        """
        Attribute values converted to the expected type.

        Args:
            varname: Variable name, or "" for global attributes
            attname: Attribute name
            kind: "double", "long" or "text"

        Returns:
            Tuple of numbers or a string; None if the attribute is absent or
            a numeric kind is requested for a text attribute
        """
        att = self._attribute(varname, attname)
        if att is None:
            return None
        if kind == "double":
            return att.as_doubles()
        if kind == "long":
            return att.as_longs()
        if kind == "text":
            return att.as_text()
        raise ValueError(f"Unknown attribute kind: {kind}")

    def get_att_names(self, varname: str) -> List[str]:
        if varname == "":
            return [att.name for att in self._global_atts]
        var = self.get_base_var_info(varname)
        return list(var.attribute_names) if var else []

    def get_att_type(self, varname: str, attname: str) -> Optional[str]:
        att = self._attribute(varname, attname)
        return att.xtype if att else None

    # ------------------------------------------------------------------
    # Projection and global configuration
    # ------------------------------------------------------------------

    @property
    def map_projection(self) -> str:
        return self._map_projection

    @property
    def global_attributes(self) -> GlobalAttributes:
        return self._global_attributes

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data snapshot of the store."""
        return {
            "dimensions": {k: asdict(v) for k, v in self._dimensions.items()},
            "coord_vars": {k: asdict(v) for k, v in self._coord_vars.items()},
            "data_vars": {k: asdict(v) for k, v in self._data_vars.items()},
            "meshes": {k: asdict(v) for k, v in self._meshes.items()},
            "global_attributes": asdict(self._global_attributes),
            "global_atts": [asdict(a) for a in self._global_atts],
            "map_projection": self._map_projection,
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, MetadataStore):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"MetadataStore({len(self._dimensions)} dimensions, "
            f"{len(self._coord_vars)} coordinate variables, "
            f"{len(self._data_vars)} data variables, {len(self._meshes)} meshes)"
        )
