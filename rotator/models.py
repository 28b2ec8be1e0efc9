from datetime import timedelta
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils.units import parse_byte_size, parse_duration


class RotationTechnique(str, Enum):
    """
    How an actively written log file is cut over to an archived copy.

    RENAME: move the file to <path>.<N> and recreate an empty file at <path>.
            Writers must reopen by path to follow.
    COPY_TRUNCATE: copy the content to <path>.<N>, then truncate <path> in place.
            Writers keep their descriptor, bytes appended between copy and
            truncate are lost.
    """

    RENAME = "rename"
    COPY_TRUNCATE = "copytruncate"


class DiscoveryConfig(BaseModel):
    """Which files under the log root are candidates for rotation."""

    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(default="", description="Root of the <namespace>/<pod>/ tree")
    include: List[str] = Field(default_factory=list, description="Glob patterns, empty matches all")
    exclude: List[str] = Field(default_factory=list, description="Glob patterns that reject a file")
    max_depth: int = Field(
        default=0,
        alias="maxDepth",
        description="Directory depth limit below root, 0 or less disables it",
    )

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value


class PolicyConfig(BaseModel):
    """
    Rotation policy for one file.

    Zero values mean "unset": a zero threshold never triggers rotation and a
    zero field in an override leaves the inherited value alone.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    size_threshold: int = Field(default=0, ge=0, alias="size")
    age_threshold: timedelta = Field(default=timedelta(0), alias="age")
    inactivity_threshold: timedelta = Field(default=timedelta(0), alias="inactive")
    keep_files: int = Field(default=0, alias="keepFiles")
    keep_days: int = Field(default=0, alias="keepDays")
    compress_after: timedelta = Field(default=timedelta(0), alias="compressAfter")
    rotation_technique: Optional[RotationTechnique] = Field(default=None, alias="defaultMode")

    @field_validator("size_threshold", mode="before")
    @classmethod
    def _parse_size(cls, value):
        return 0 if value is None else parse_byte_size(value)

    @field_validator("age_threshold", "inactivity_threshold", "compress_after", mode="before")
    @classmethod
    def _parse_duration(cls, value):
        return timedelta(0) if value is None else parse_duration(value)

    @field_validator("rotation_technique", mode="before")
    @classmethod
    def _parse_technique(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @property
    def technique(self) -> RotationTechnique:
        """The technique to use, rename when none is configured."""
        return self.rotation_technique or RotationTechnique.RENAME


class BudgetConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    per_namespace_bytes: int = Field(default=0, ge=0, alias="perNamespaceBytes")

    @field_validator("per_namespace_bytes", mode="before")
    @classmethod
    def _parse_size(cls, value):
        return 0 if value is None else parse_byte_size(value)


class Defaults(BaseModel):
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    budgets: BudgetConfig = Field(default_factory=BudgetConfig)


class NamespaceOverride(BaseModel):
    # budgets is accepted but the budget tracker only uses the global limit
    policy: Optional[PolicyConfig] = None
    discovery: Optional[DiscoveryConfig] = None
    budgets: Optional[BudgetConfig] = None


class PathOverride(BaseModel):
    match: str = Field(..., description="Glob pattern matched against the full file path")
    policy: Optional[PolicyConfig] = None
    discovery: Optional[DiscoveryConfig] = None


class Overrides(BaseModel):
    namespaces: Dict[str, NamespaceOverride] = Field(default_factory=dict)
    paths: List[PathOverride] = Field(
        default_factory=list, description="Tried in order, first match wins"
    )

    @field_validator("namespaces", mode="before")
    @classmethod
    def _none_as_empty_dict(cls, value):
        return {} if value is None else value

    @field_validator("paths", mode="before")
    @classmethod
    def _none_as_empty_list(cls, value):
        return [] if value is None else value


class RotatorConfig(BaseModel):
    """Complete rotation configuration as loaded from YAML."""

    defaults: Defaults = Field(default_factory=Defaults)
    overrides: Overrides = Field(default_factory=Overrides)

    @field_validator("defaults", "overrides", mode="before")
    @classmethod
    def _none_as_empty_section(cls, value):
        return {} if value is None else value
