"""
Plain-text blocks describing records, used inside LLM prompts
"""

from typing import Iterable, List, Optional

from models.candidate import Applicant, CandidateProfile
from models.conversation import DataSnapshot
from models.job_order import Client, JobOrder

NOT_SPECIFIED = "Not specified"

# Attribute -> label, in the order they appear in a profile block
PROFILE_LABELS = {
    "full_name": "Name",
    "email": "Email",
    "phone": "Phone",
    "linkedin_url": "LinkedIn",
    "current_job_title": "Current Job Title",
    "current_company": "Current Company",
    "location": "Location",
    "total_yoe": "Years of Experience",
    "primary_skill": "Primary Skill",
    "secondary_skills": "Secondary Skills",
    "desired_salary": "Desired Salary",
}


def _value(value) -> str:
    if value is None or value == [] or value == "":
        return NOT_SPECIFIED
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_profile_block(profile: CandidateProfile) -> str:
    """One "Label: value" line per profile field"""
    return "\n".join(
        f"{label}: {_value(getattr(profile, name))}" for name, label in PROFILE_LABELS.items()
    )


def format_applicant_block(applicant: Applicant, include_id: bool = True) -> str:
    lines = [f"ID: {applicant.id}"] if include_id and applicant.id else []
    lines.append(format_profile_block(applicant))
    lines.extend([
        f"Availability: {_value(applicant.availability)}",
        f"Status: {applicant.status}",
        f"Source: {_value(applicant.source)}",
        f"Date Applied: {_value(applicant.date_applied)}",
        f"Rating: {_value(applicant.rating)}",
        f"Resume: {'Available' if applicant.resume else 'Not available'}",
    ])
    if applicant.notes:
        lines.append(f"Recruiter Notes: {applicant.notes}")
    return "\n".join(lines)


def format_job_block(job: JobOrder, index: Optional[int] = None) -> str:
    header = [f"Job {index}:"] if index is not None else []
    return "\n".join(header + [
        f"ID: {job.id}",
        f"Title: {job.job_title}",
        f"Company: {_value(job.client_company)}",
        f"Salary Range: {_value(job.salary_range)}",
        f"Status: {job.status}",
        f"Priority: {job.priority}",
        f"Core Responsibilities: {job.notes or 'No description provided.'}",
    ])


def format_client_block(client: Client) -> str:
    return "\n".join([
        f"ID: {client.id}",
        f"Company: {client.company_name}",
        f"Industry: {_value(client.industry)}",
        f"Location: {_value(client.location)}",
        f"Status: {client.status}",
    ])


def _join(blocks: Iterable[str], empty: str) -> str:
    blocks = list(blocks)
    return "\n---\n".join(blocks) if blocks else empty


def format_snapshot(snapshot: DataSnapshot) -> str:
    """Serialize the whole snapshot for the assistant's system prompt"""
    sections: List[str] = [
        "APPLICANTS:",
        _join((format_applicant_block(a) for a in snapshot.applicants), "No applicants in database"),
        "",
        "JOB ORDERS:",
        _join((format_job_block(j) for j in snapshot.job_orders), "No job orders in database"),
        "",
        "CLIENTS:",
        _join((format_client_block(c) for c in snapshot.clients), "No clients in database"),
    ]
    return "\n".join(sections)
