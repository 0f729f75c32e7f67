"""
Pydantic models for controller catalog records and filter requests.

Field names are the wire contract shared by the database columns, the
catalog file (spreadsheet headers or JSON keys) and the HTTP API.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Numeric capability counts, in column order
NUMERIC_FIELDS = (
    "dio",
    "aio",
    "serial_ports",
    "pulse_axes",
    "ethercat_real_or_virtual_axes",
    "ethercat_virtual_axes",
    "e_cam_axes",
)

# Boolean capability flags, in column order
FLAG_FIELDS = (
    "pulse_interp_linear",
    "pulse_interp_circular",
    "pulse_interp_fixed",
    "ethercat_interp_linear",
    "ethercat_interp_circular",
    "ethercat_interp_fixed",
    "ethercat_interp_spiral",
)

RECORD_FIELDS = ("model",) + NUMERIC_FIELDS + FLAG_FIELDS

# Largest value an SQLite INTEGER column holds
MAX_COUNT = 2**63 - 1


def _integral(value: Any) -> Any:
    """Turn integral floats (as spreadsheets store them) into ints."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class ProductRecord(BaseModel):
    """
    Capability profile of one controller model.

    Numeric counts default to 0 and flags to False so that sparse source
    rows still load. Only the model name is required.
    """
    model_config = ConfigDict(protected_namespaces=())

    model: str = Field(..., min_length=1, description="Unique model name, case-sensitive")

    dio: int = Field(default=0, ge=0, le=MAX_COUNT, description="Digital I/O channel count")
    aio: int = Field(default=0, ge=0, le=MAX_COUNT, description="Analog I/O channel count")
    serial_ports: int = Field(default=0, ge=0, le=MAX_COUNT, description="Serial port count")
    pulse_axes: int = Field(default=0, ge=0, le=MAX_COUNT, description="Pulse-controlled axis count")
    ethercat_real_or_virtual_axes: int = Field(
        default=0, ge=0, le=MAX_COUNT,
        description="EtherCAT axes usable as real or virtual (shared pool)"
    )
    ethercat_virtual_axes: int = Field(
        default=0, ge=0, le=MAX_COUNT,
        description="EtherCAT axes usable as virtual only"
    )
    e_cam_axes: int = Field(default=0, ge=0, le=MAX_COUNT, description="Electronic-cam axis count")

    pulse_interp_linear: bool = Field(default=False, description="Pulse linear interpolation")
    pulse_interp_circular: bool = Field(default=False, description="Pulse circular interpolation")
    pulse_interp_fixed: bool = Field(default=False, description="Pulse fixed-angle interpolation")
    ethercat_interp_linear: bool = Field(default=False, description="EtherCAT linear interpolation")
    ethercat_interp_circular: bool = Field(default=False, description="EtherCAT circular interpolation")
    ethercat_interp_fixed: bool = Field(default=False, description="EtherCAT fixed-angle interpolation")
    ethercat_interp_spiral: bool = Field(default=False, description="EtherCAT spiral interpolation")

    @field_validator("model", mode="before")
    @classmethod
    def strip_model(cls, v):
        if isinstance(v, str):
            return v.strip()
        if isinstance(v, (int, float)):
            return str(_integral(v))
        return v

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def coerce_count(cls, v):
        if v is None or v == "":
            return 0
        return _integral(v)

    @field_validator(*FLAG_FIELDS, mode="before")
    @classmethod
    def coerce_flag(cls, v):
        if v is None or v == "":
            return False
        return _integral(v)

    @property
    def ethercat_axis_budget(self) -> int:
        """Total EtherCAT axes available for virtual use."""
        return self.ethercat_real_or_virtual_axes + self.ethercat_virtual_axes

    def as_row(self) -> tuple:
        """Values in RECORD_FIELDS order, flags as 0/1 for storage."""
        data = self.model_dump()
        return tuple(
            int(data[name]) if name in FLAG_FIELDS else data[name]
            for name in RECORD_FIELDS
        )


class CatalogEntry(ProductRecord):
    """A stored ProductRecord with its store-internal id."""
    id: int = Field(..., description="Store-internal row id")

    def to_record(self) -> ProductRecord:
        """Strip the store id."""
        return ProductRecord(**self.model_dump(exclude={"id"}))


class FilterRequest(BaseModel):
    """
    Minimum-capability filter.

    A numeric field set to a value means "at least this many"; None means
    no constraint (0 is a real minimum, satisfied by every record). A flag
    set to True means the feature is required; False or None adds nothing.
    Unknown keys are ignored.
    """
    dio: Optional[int] = Field(default=None, ge=0, le=MAX_COUNT)
    aio: Optional[int] = Field(default=None, ge=0, le=MAX_COUNT)
    serial_ports: Optional[int] = Field(default=None, ge=0, le=MAX_COUNT)
    pulse_axes: Optional[int] = Field(default=None, ge=0, le=MAX_COUNT)
    ethercat_real_or_virtual_axes: Optional[int] = Field(default=None, ge=0, le=MAX_COUNT)
    ethercat_virtual_axes: Optional[int] = Field(default=None, ge=0, le=MAX_COUNT)
    e_cam_axes: Optional[int] = Field(default=None, ge=0, le=MAX_COUNT)

    pulse_interp_linear: Optional[bool] = None
    pulse_interp_circular: Optional[bool] = None
    pulse_interp_fixed: Optional[bool] = None
    ethercat_interp_linear: Optional[bool] = None
    ethercat_interp_circular: Optional[bool] = None
    ethercat_interp_fixed: Optional[bool] = None
    ethercat_interp_spiral: Optional[bool] = None

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def blank_is_unset(cls, v):
        # Cleared number inputs in the UI arrive as ""
        if v == "":
            return None
        return v

    def active_minimums(self) -> dict[str, int]:
        """Numeric fields that carry a constraint."""
        return {
            name: getattr(self, name)
            for name in NUMERIC_FIELDS
            if getattr(self, name) is not None
        }

    def required_flags(self) -> list[str]:
        """Flag fields that must be supported."""
        return [name for name in FLAG_FIELDS if getattr(self, name) is True]
