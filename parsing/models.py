"""Pydantic models for the extraction stage."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class JobType(StrEnum):
    FULL_TIME = "FT"
    PART_TIME = "PT"
    CONTRACT = "C"


class WorkArrangement(StrEnum):
    REMOTE = "REMOTE"
    HYBRID = "HYBRID"
    IN_OFFICE = "IN_OFFICE"


class ExtractedJob(BaseModel):
    """Structured job posting returned by the model.

    Optional fields stay unset when the page does not support them and are
    omitted from serialized output. Unknown keys are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    title: str = Field(..., min_length=1, description="The exact job title")
    company: str = Field(..., description="The hiring company name")
    locations: list[str] = Field(
        default_factory=list, description="Work locations, e.g. 'San Francisco, CA' or 'Remote'"
    )
    description: str = Field(..., description="Concise HTML summary of the role")
    job_type: JobType | None = Field(None, description="FT, PT or C")
    work_arrangement: WorkArrangement | None = Field(
        None, description="REMOTE, HYBRID or IN_OFFICE"
    )
    salary_min: int | float | None = Field(None, ge=0, description="Minimum annual salary")
    salary_max: int | float | None = Field(None, ge=0, description="Maximum annual salary")
    responsibilities: list[str] | None = Field(
        None, max_length=7, description="Up to 7 key responsibilities"
    )
    minimum_qualifications: list[str] | None = Field(
        None, description="Bare-minimum requirements"
    )
    preferred_qualifications: list[str] | None = Field(
        None, description="Preferred qualifications"
    )

    def to_output(self) -> dict[str, Any]:
        """Caller-facing JSON shape (camelCase, unset fields omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
