"""SQLModel definitions for the ingested metadata store.

Single source of truth for all table schemas.

Every entity row carries ``package_ref``: the top-level package it was loaded
into. Child rows (command args, enum items, bitmap fields, struct items,
device type clusters) carry an ``ordinal`` that is their position in source
order.
"""

from enum import Enum

from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint
from sqlmodel import Field, SQLModel

# ============================================================================
# ENUMS
# ============================================================================


class PackageType(str, Enum):
    """Kind of file a package row was created from."""

    ZCL_PROPERTIES = "zcl-properties"
    ZCL_JSON = "zcl-json"
    ZCL_XML = "zcl-xml"
    ZCL_XML_STANDALONE = "zcl-xml-standalone"
    ZCL_SCHEMA = "zcl-schema"
    ZCL_VALIDATION = "zcl-validation"
    GEN_TEMPLATES_JSON = "gen-templates-json"
    GEN_SINGLE_TEMPLATE = "gen-single-template"


class ZclType(str, Enum):
    """Classification of a named data type within a package."""

    ENUM = "enum"
    BITMAP = "bitmap"
    STRUCT = "struct"
    UNKNOWN = "unknown"


def _package_fk() -> Column:  # type: ignore[type-arg]
    return Column(Integer, ForeignKey("packages.id", ondelete="CASCADE"), index=True, nullable=False)


# ============================================================================
# PACKAGES & OPTIONS
# ============================================================================


class Package(SQLModel, table=True):
    """A checksum-identified unit of ingested metadata."""

    __tablename__ = "packages"
    __table_args__ = (UniqueConstraint("path", "crc", name="uq_package_path_crc"),)

    id: int | None = Field(default=None, primary_key=True)
    path: str = Field(index=True)
    crc: str
    type: str = Field(index=True)
    version: str | None = None
    parent_package_ref: int | None = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("packages.id", ondelete="CASCADE"), nullable=True),
    )


class PackageOption(SQLModel, table=True):
    """Key-coded configuration value scoped to a package."""

    __tablename__ = "package_options"
    __table_args__ = (UniqueConstraint("package_ref", "category", "code", name="uq_option"),)

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    category: str = Field(index=True)
    code: str
    label: str | None = None


class PackageOptionDefault(SQLModel, table=True):
    """Default option of a category, pointing at an existing option row."""

    __tablename__ = "package_option_defaults"
    __table_args__ = (UniqueConstraint("package_ref", "category", name="uq_option_default"),)

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    category: str
    option_ref: int = Field(
        sa_column=Column(Integer, ForeignKey("package_options.id"), nullable=False)
    )


# ============================================================================
# DOMAINS & SPECS
# ============================================================================


class Spec(SQLModel, table=True):
    """A versioned protocol specification a domain follows."""

    __tablename__ = "specs"

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    code: str
    description: str | None = None
    certifiable: bool = False
    domain_name: str | None = None
    is_current: bool = True


class Domain(SQLModel, table=True):
    """Named functional grouping of clusters."""

    __tablename__ = "domains"

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    name: str = Field(index=True)
    latest_spec_ref: int | None = Field(
        default=None, sa_column=Column(Integer, ForeignKey("specs.id"), nullable=True)
    )


# ============================================================================
# DATA TYPES
# ============================================================================


class Atomic(SQLModel, table=True):
    """Primitive wire type (int8u, char_string, ...)."""

    __tablename__ = "atomics"

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    atomic_identifier: int | None = None
    name: str = Field(index=True)
    description: str | None = None
    size: int | None = None
    is_discrete: bool = False
    is_signed: bool = False
    is_string: bool = False
    is_long: bool = False
    is_char: bool = False


class ZclEnum(SQLModel, table=True):
    """Named enumeration."""

    __tablename__ = "enums"

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    name: str = Field(index=True)
    type: str | None = None


class EnumItem(SQLModel, table=True):
    __tablename__ = "enum_items"

    id: int | None = Field(default=None, primary_key=True)
    enum_ref: int = Field(
        sa_column=Column(Integer, ForeignKey("enums.id", ondelete="CASCADE"), index=True)
    )
    name: str
    value: int | None = None
    ordinal: int


class Bitmap(SQLModel, table=True):
    """Named bitmap."""

    __tablename__ = "bitmaps"

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    name: str = Field(index=True)
    type: str | None = None


class BitmapField(SQLModel, table=True):
    __tablename__ = "bitmap_fields"

    id: int | None = Field(default=None, primary_key=True)
    bitmap_ref: int = Field(
        sa_column=Column(Integer, ForeignKey("bitmaps.id", ondelete="CASCADE"), index=True)
    )
    name: str
    mask: int
    type: str
    ordinal: int


class Struct(SQLModel, table=True):
    """Named structure."""

    __tablename__ = "structs"

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    name: str = Field(index=True)


class StructItem(SQLModel, table=True):
    __tablename__ = "struct_items"

    id: int | None = Field(default=None, primary_key=True)
    struct_ref: int = Field(
        sa_column=Column(Integer, ForeignKey("structs.id", ondelete="CASCADE"), index=True)
    )
    name: str
    type: str | None = None
    ordinal: int
    entry_type: str | None = None
    min_length: int = 0
    max_length: int | None = None
    is_writable: bool = False


# ============================================================================
# CLUSTERS, COMMANDS, ATTRIBUTES
# ============================================================================


class Cluster(SQLModel, table=True):
    """A functional unit of commands and attributes."""

    __tablename__ = "clusters"

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    code: int = Field(index=True)
    manufacturer_code: int | None = None
    name: str
    description: str | None = None
    define: str | None = None
    domain_name: str | None = None
    is_singleton: bool = False
    introduced_in: str | None = None
    removed_in: str | None = None


class Command(SQLModel, table=True):
    """Command of a cluster; ``cluster_ref`` is null for global commands."""

    __tablename__ = "commands"

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    cluster_ref: int | None = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("clusters.id", ondelete="CASCADE"), index=True),
    )
    code: int
    manufacturer_code: int | None = None
    name: str
    description: str | None = None
    source: str | None = None
    is_optional: bool = False
    introduced_in: str | None = None
    removed_in: str | None = None


class CommandArg(SQLModel, table=True):
    __tablename__ = "command_args"

    id: int | None = Field(default=None, primary_key=True)
    command_ref: int = Field(
        sa_column=Column(Integer, ForeignKey("commands.id", ondelete="CASCADE"), index=True)
    )
    name: str
    type: str | None = None
    is_array: bool = False
    present_if: str | None = None
    count_arg: str | None = None
    ordinal: int
    introduced_in: str | None = None
    removed_in: str | None = None


class Attribute(SQLModel, table=True):
    """Attribute of a cluster; ``cluster_ref`` is null for global attributes."""

    __tablename__ = "attributes"

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    cluster_ref: int | None = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("clusters.id", ondelete="CASCADE"), index=True),
    )
    code: int
    manufacturer_code: int | None = None
    name: str | None = None
    type: str | None = None
    side: str | None = None
    define: str | None = None
    min: str | None = None
    max: str | None = None
    min_length: int = 0
    max_length: int | None = None
    is_writable: bool = False
    is_optional: bool = False
    is_reportable: bool = False
    is_scene_required: bool = False
    default_value: str | None = None
    entry_type: str | None = None
    introduced_in: str | None = None
    removed_in: str | None = None


class GlobalAttributeDefault(SQLModel, table=True):
    """Per-cluster default value of a globally declared attribute."""

    __tablename__ = "global_attribute_defaults"

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    cluster_ref: int = Field(
        sa_column=Column(Integer, ForeignKey("clusters.id", ondelete="CASCADE"), index=True)
    )
    attribute_ref: int | None = Field(
        default=None, sa_column=Column(Integer, ForeignKey("attributes.id"), nullable=True)
    )
    code: int
    side: str
    manufacturer_code: int | None = None
    default_value: str | None = None


# ============================================================================
# DEVICE TYPES
# ============================================================================


class DeviceType(SQLModel, table=True):
    """Composite capability profile."""

    __tablename__ = "device_types"

    id: int | None = Field(default=None, primary_key=True)
    package_ref: int = Field(sa_column=_package_fk())
    code: int = Field(index=True)
    profile_id: int | None = None
    domain_name: str | None = None
    name: str
    description: str | None = None


class DeviceTypeCluster(SQLModel, table=True):
    """Cluster inclusion directive of a device type."""

    __tablename__ = "device_type_clusters"

    id: int | None = Field(default=None, primary_key=True)
    device_type_ref: int = Field(
        sa_column=Column(Integer, ForeignKey("device_types.id", ondelete="CASCADE"), index=True)
    )
    cluster_name: str
    cluster_ref: int | None = Field(
        default=None, sa_column=Column(Integer, ForeignKey("clusters.id"), nullable=True)
    )
    include_client: bool = False
    include_server: bool = False
    lock_client: bool = False
    lock_server: bool = False
    ordinal: int


class DeviceTypeAttribute(SQLModel, table=True):
    __tablename__ = "device_type_attributes"

    id: int | None = Field(default=None, primary_key=True)
    device_type_cluster_ref: int = Field(
        sa_column=Column(
            Integer, ForeignKey("device_type_clusters.id", ondelete="CASCADE"), index=True
        )
    )
    attribute_name: str
    attribute_ref: int | None = Field(
        default=None, sa_column=Column(Integer, ForeignKey("attributes.id"), nullable=True)
    )


class DeviceTypeCommand(SQLModel, table=True):
    __tablename__ = "device_type_commands"

    id: int | None = Field(default=None, primary_key=True)
    device_type_cluster_ref: int = Field(
        sa_column=Column(
            Integer, ForeignKey("device_type_clusters.id", ondelete="CASCADE"), index=True
        )
    )
    command_name: str
    command_ref: int | None = Field(
        default=None, sa_column=Column(Integer, ForeignKey("commands.id"), nullable=True)
    )
