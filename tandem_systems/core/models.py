"""
Pydantic models for facility systems data.

Covers model descriptors read from the facility info and the finalized
system records handed to presentation code. All records serialize to the
camelCase JSON shape with ``to_dict()``.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ModelDescriptor(_Record):
    """A model linked to a facility."""

    model_id: str = Field(alias="modelId")
    label: str = Field(default="")
    is_main: bool = Field(default=False, alias="main")

    @field_validator("label", mode="before")
    @classmethod
    def _blank_label(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def display_name(self) -> str:
        return self.label or "Untitled Model"


class SubsystemRecord(_Record):
    """A subsystem nested under its parent system."""

    name: str
    key: str
    parent: str
    class_bitmask: int = Field(default=0, alias="classBitmask")


class ModelElements(_Record):
    """Keys of the elements of one model that belong to a system."""

    model_urn: str = Field(alias="modelURN")
    model_name: str = Field(alias="modelName")
    keys: List[str] = Field(default_factory=list)


class SystemRecord(_Record):
    """A finalized top-level system with its subsystems and members."""

    name: str
    key: str
    system_id: str = Field(alias="systemId")
    class_bitmask: int = Field(default=0, alias="classBitmask")
    element_count: int = Field(default=0, alias="elementCount")
    subsystems: List[SubsystemRecord] = Field(default_factory=list)
    elements_by_model: List[ModelElements] = Field(default_factory=list, alias="elementsByModel")
