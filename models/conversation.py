"""
Conversation and data snapshot models for the assistant
"""

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from models.candidate import Applicant
from models.job_order import Client, JobOrder


class ChatMessage(BaseModel):
    """One turn of the assistant transcript"""
    role: Literal["user", "assistant"]
    content: str


class ChatReply(BaseModel):
    """Assistant answer. A failed call still carries a user-visible message."""
    success: bool
    message: str
    error: Optional[str] = None
    resumes_attached: int = 0


class DataSnapshot(BaseModel):
    """Read-only view of the store, loaded fresh for each analysis or chat call"""

    model_config = ConfigDict(frozen=True)

    applicants: Tuple[Applicant, ...] = ()
    job_orders: Tuple[JobOrder, ...] = ()
    clients: Tuple[Client, ...] = ()

    def unrated_applicants(self) -> List[Applicant]:
        return [applicant for applicant in self.applicants if applicant.rating is None]

    def open_job_orders(self) -> List[JobOrder]:
        return [job for job in self.job_orders if job.is_open_for_matching]

    def find_applicant(self, applicant_id: str) -> Optional[Applicant]:
        return next((a for a in self.applicants if a.id == applicant_id), None)
