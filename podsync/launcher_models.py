"""Structured launcher (fdbmonitor) configuration records.

These mirror the JSON the unified image publishes in its
``launcher-current-configuration`` annotation. Equality is structural:
field order and numerically equivalent encodings do not matter, unknown
fields are ignored.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ArgumentType = Literal["Literal", "Concatenate", "Environment", "ProcessNumber"]


class Argument(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: ArgumentType = Field("Literal", description="How the argument value is produced")
    value: str = ""
    values: list[Argument] = Field(default_factory=list, description="Parts of a Concatenate argument")
    source: str = Field("", description="Environment variable for Environment arguments")
    multiplier: int = 0
    offset: int = 0


class ProcessConfiguration(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: str = ""
    run_servers: bool | None = Field(None, alias="runServers")
    arguments: list[Argument] = Field(default_factory=list)


Argument.model_rebuild()
