"""
Candidate data models
"""

import re
from typing import ClassVar, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from utils.skill_normalizer import SkillNormalizer

MAX_SECONDARY_SKILLS = 10

ApplicantStatus = Literal["New", "Screening", "Submitted", "Interview", "Offer", "Placed", "Rejected"]

_email_adapter = TypeAdapter(EmailStr)
_number_pattern = re.compile(r"-?\d+(?:\.\d+)?")


def coerce_optional_text(value):
    """Strip strings; blank or 'null'-like answers become None"""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "n/a", "not found", "unknown"):
        return None
    return text


def coerce_number(value) -> Optional[float]:
    """Read a number out of a model answer such as 7, "7.5" or "about 12 years" """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _number_pattern.search(str(value))
    return float(match.group()) if match else None


class CandidateProfile(BaseModel):
    """Structured fields extracted from a resume. Every field is optional."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # If none of these are found the extraction is treated as low-confidence
    minimal_fields: ClassVar[Tuple[str, ...]] = ("full_name", "email")

    full_name: Optional[str] = Field(None, description="The candidate's full name")
    email: Optional[str] = Field(None, description="The candidate's email address")
    phone: Optional[str] = Field(None, description="The candidate's phone number, original format")
    linkedin_url: Optional[str] = Field(None, description="The candidate's LinkedIn profile URL")
    current_job_title: Optional[str] = Field(None, description="The most recent job title from work history")
    current_company: Optional[str] = Field(None, description="The most recent company from work history")
    location: Optional[str] = Field(None, description="City and province/state, e.g. 'Toronto, ON'")
    total_yoe: Optional[float] = Field(
        None,
        alias="totalYOE",
        description="Total years of professional experience calculated from work history",
    )
    primary_skill: Optional[str] = Field(None, description="The candidate's main skill or specialty area")
    secondary_skills: Optional[List[str]] = Field(
        None,
        description="Additional skills and technologies, most relevant first (max 10)",
    )
    desired_salary: Optional[str] = Field(None, description="Desired salary or hourly rate if explicitly mentioned")

    @field_validator(
        "full_name", "phone", "linkedin_url", "current_job_title", "current_company",
        "location", "primary_skill", "desired_salary",
        mode="before",
    )
    @classmethod
    def _clean_text(cls, value):
        return coerce_optional_text(value)

    @field_validator("email", mode="before")
    @classmethod
    def _valid_email_or_none(cls, value):
        value = coerce_optional_text(value)
        if value is None:
            return None
        try:
            return _email_adapter.validate_python(value)
        except ValidationError:
            return None

    @field_validator("total_yoe", mode="before")
    @classmethod
    def _non_negative_years(cls, value):
        years = coerce_number(value)
        if years is None:
            return None
        return round(max(years, 0.0), 1)

    @field_validator("secondary_skills", mode="before")
    @classmethod
    def _bounded_skills(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            value = value.split(",")
        skills = SkillNormalizer.dedupe_skills(
            [str(skill) for skill in value if skill is not None],
            limit=MAX_SECONDARY_SKILLS,
        )
        return skills or None


class Applicant(CandidateProfile):
    """Applicant record as stored in the applicants collection"""

    minimal_fields: ClassVar[Tuple[str, ...]] = ()

    id: Optional[str] = None
    status: ApplicantStatus = "New"
    source: Optional[str] = None
    date_applied: Optional[str] = None
    availability: Optional[str] = None
    resume: Optional[str] = Field(None, description="Object storage key of the uploaded resume")
    notes: Optional[str] = None
    rating: Optional[float] = Field(None, ge=1, le=10)

    @field_validator("source", "date_applied", "availability", "resume", "notes", mode="before")
    @classmethod
    def _clean_record_text(cls, value):
        return coerce_optional_text(value)

    @field_validator("rating", mode="before")
    @classmethod
    def _unset_rating(cls, value):
        # 0 was written by older clients to mean "not rated"
        number = coerce_number(value)
        return number if number else None

    @classmethod
    def from_profile(cls, profile: CandidateProfile, **fields) -> "Applicant":
        """Build a new applicant from a parsed resume plus recruiter-entered fields"""
        data = profile.model_dump()
        data.update(fields)
        return cls(**data)

    def to_document(self) -> dict:
        """Serialize for the document store (id lives outside the document)"""
        return self.model_dump(by_alias=True, exclude={"id"})


class EmploymentPeriod(BaseModel):
    """One position from the resume's work history"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: Optional[str] = None
    company: Optional[str] = None
    start: Optional[str] = Field(None, description="Start date as YYYY-MM, or YYYY if only the year is given")
    end: Optional[str] = Field(None, description="End date as YYYY-MM or YYYY, or 'Present' for a current role")

    @field_validator("title", "company", "start", "end", mode="before")
    @classmethod
    def _clean_text(cls, value):
        return coerce_optional_text(value)


class ResumeExtraction(CandidateProfile):
    """Shape requested from the model when parsing a resume"""

    stated_years_of_experience: Optional[float] = Field(
        None,
        description="Only if the resume explicitly states 'X years of experience': that number, verbatim",
    )
    employment_history: List[EmploymentPeriod] = Field(
        default_factory=list,
        description="Every position in the work history, most recent first",
    )

    @field_validator("stated_years_of_experience", mode="before")
    @classmethod
    def _stated_years(cls, value):
        years = coerce_number(value)
        return years if years is not None and years > 0 else None

    @field_validator("employment_history", mode="before")
    @classmethod
    def _history_list(cls, value):
        if not value:
            return []
        return [item for item in value if isinstance(item, (dict, EmploymentPeriod))]

    def to_profile(self, **overrides) -> CandidateProfile:
        data = {name: getattr(self, name) for name in CandidateProfile.model_fields}
        data.update(overrides)
        return CandidateProfile(**data)
