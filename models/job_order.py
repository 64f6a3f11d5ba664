"""
Job order, client and team member data models
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from models.candidate import coerce_optional_text

JobStatus = Literal["Open", "Interviewing", "On Hold", "Placed", "Canceled"]
JobPriority = Literal["High", "Medium", "Low"]
ClientStatus = Literal["Active Client", "Prospect", "Past Client", "Do Not Contact"]
TeamRole = Literal["Admin", "Recruiter", "Viewer"]

# Only requisitions in these states take part in candidate matching
OPEN_FOR_MATCHING = ("Open", "Interviewing")


class JobOrder(BaseModel):
    """Requisition being staffed for a client"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    job_title: str
    client_company: str = ""
    hiring_manager: Optional[str] = None
    status: JobStatus = "Open"
    priority: JobPriority = "Medium"
    salary_range: str = ""
    fee_type: Optional[str] = None
    date_opened: Optional[str] = None
    notes: Optional[str] = Field(None, description="Core responsibilities of the role")

    @field_validator("hiring_manager", "fee_type", "date_opened", "notes", mode="before")
    @classmethod
    def _clean_text(cls, value):
        return coerce_optional_text(value)

    @property
    def is_open_for_matching(self) -> bool:
        return self.status in OPEN_FOR_MATCHING

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"id"})


class Client(BaseModel):
    """Client company the agency recruits for"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    company_name: str
    industry: str = ""
    website: Optional[str] = None
    status: ClientStatus = "Prospect"
    location: str = ""
    fee_agreement: Optional[str] = None
    key_contact: Optional[str] = None
    notes: Optional[str] = None

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"id"})


class TeamMember(BaseModel):
    """Recruiting team member and their permission role"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    email: str
    name: str = ""
    role: TeamRole = "Viewer"
    invited_by: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, value):
        return str(value).strip().lower()

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"id"})
