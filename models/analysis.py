"""
Candidate analysis and job match models
"""

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.json_schema import SkipJsonSchema
from pydantic.alias_generators import to_camel

from models.candidate import coerce_number, coerce_optional_text

MAX_PROS = 5
MAX_DISCUSSION_POINTS = 4

# Labels the model sometimes puts in front of discussion points
_DEFICIT_PREFIX = re.compile(r"^\s*(?:cons?|weakness(?:es)?|red flags?|concerns?|gaps?)\s*[:\-]\s*", re.IGNORECASE)


def clamp(value: float, lower: float, upper: float) -> float:
    return min(max(value, lower), upper)


def _text_list(value, limit: int) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    items = [coerce_optional_text(item) for item in value]
    return [item for item in items if item][:limit]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequisitionAssessment(_CamelModel):
    """Model's view of one requisition: role eligibility plus four sub-scores"""

    job_id: str = Field(..., description="The ID of the job order, copied exactly")
    job_title: Optional[str] = Field(None, description="The job title")
    role_match: bool = Field(
        ...,
        description="True only if the candidate's professional role category matches the job's role category",
    )
    experience_fit: float = Field(0, description="0-100: years doing this exact type of work")
    skill_overlap: float = Field(0, description="0-100: overlap with the job's core responsibilities")
    compensation_location_fit: float = Field(0, description="0-100: salary and location compatibility")
    seniority_fit: float = Field(0, description="0-100: seniority level fit")
    match_reason: str = Field("", description="Why this candidate fits this role")
    concerns: Optional[str] = Field(None, description="Any concerns about this match")

    @field_validator("job_id", mode="before")
    @classmethod
    def _id_as_text(cls, value):
        return str(value).strip()

    @field_validator("experience_fit", "skill_overlap", "compensation_location_fit", "seniority_fit", mode="before")
    @classmethod
    def _percent(cls, value):
        number = coerce_number(value)
        return clamp(number, 0.0, 100.0) if number is not None else 0.0

    @field_validator("match_reason", mode="before")
    @classmethod
    def _reason(cls, value):
        return coerce_optional_text(value) or ""

    @field_validator("concerns", mode="before")
    @classmethod
    def _concerns(cls, value):
        if isinstance(value, list):
            value = "; ".join(str(item) for item in value if item)
        return coerce_optional_text(value)


class AnalysisExtraction(_CamelModel):
    """Shape requested from the model for an applicant analysis"""

    overall_rating: float = Field(..., description="Overall candidate rating from 1-10")
    pros: List[str] = Field(default_factory=list, description="Strengths and positive attributes (3-5 items)")
    potential_discussion_points: List[str] = Field(
        default_factory=list,
        description="Interview questions to explore (2-4 items), never phrased as weaknesses",
    )
    summary: str = Field(..., description="Brief professional summary of the candidate (2-3 sentences)")
    requisition_assessments: List[RequisitionAssessment] = Field(
        default_factory=list,
        description="One entry per open job order listed in the instructions",
    )
    # Number of assessments dropped because they failed validation
    skipped_assessments: SkipJsonSchema[int] = 0

    @model_validator(mode="before")
    @classmethod
    def _drop_invalid_assessments(cls, data):
        if not isinstance(data, dict):
            return data
        key = "requisition_assessments" if "requisition_assessments" in data else "requisitionAssessments"
        items = data.get(key)
        if items is None:
            return {**data, key: []}
        if not isinstance(items, list):
            return data

        valid = []
        for item in items:
            try:
                valid.append(RequisitionAssessment.model_validate(item))
            except ValidationError:
                continue
        return {**data, key: valid, "skippedAssessments": len(items) - len(valid)}

    @field_validator("overall_rating", mode="before")
    @classmethod
    def _rating(cls, value):
        number = coerce_number(value)
        if number is None:
            raise ValueError("overallRating must be a number")
        return round(clamp(number, 1.0, 10.0), 1)

    @field_validator("pros", mode="before")
    @classmethod
    def _pros(cls, value):
        return _text_list(value, MAX_PROS)

    @field_validator("potential_discussion_points", mode="before")
    @classmethod
    def _discussion_points(cls, value):
        points = _text_list(value, MAX_DISCUSSION_POINTS)
        return [_DEFICIT_PREFIX.sub("", point) for point in points]

    @field_validator("summary", mode="before")
    @classmethod
    def _summary(cls, value):
        text = coerce_optional_text(value)
        if text is None:
            raise ValueError("summary is required")
        return text


class JobMatch(_CamelModel):
    """Requisition that passed the eligibility filter and the score threshold"""

    job_id: str
    job_title: str
    match_score: int = Field(..., ge=0, le=100)
    match_reason: str
    concerns: Optional[str] = None


class CandidateAnalysis(_CamelModel):
    """Result of analyzing one applicant against the open requisitions"""

    overall_rating: Optional[float] = Field(None, ge=1, le=10)
    pros: List[str] = Field(default_factory=list)
    potential_discussion_points: List[str] = Field(default_factory=list)
    summary: str
    job_matches: List[JobMatch] = Field(default_factory=list)
