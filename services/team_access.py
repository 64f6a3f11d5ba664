"""
Team member role lookup and permissions
"""

from dataclasses import dataclass
from typing import Optional

from models.job_order import TeamMember
from utils.logging_utils import get_logger

logger = get_logger(__name__)

TEAM_COLLECTION = "teamMembers"
EDITOR_ROLES = ("Admin", "Recruiter")


@dataclass(frozen=True)
class UserAccess:
    email: Optional[str]
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "Admin"

    @property
    def can_edit(self) -> bool:
        return self.role in EDITOR_ROLES

    @property
    def can_delete(self) -> bool:
        return self.role in EDITOR_ROLES


def resolve_user_access(db, email: Optional[str]) -> UserAccess:
    """
    Resolve the signed-in user's role from the teamMembers collection

    An empty team makes the first user Admin so someone can send invitations.
    Unknown users and lookup failures get Viewer access.

    Args:
        db: Document store
        email: Signed-in user's email

    Returns:
        UserAccess for the user
    """
    if not email:
        return UserAccess(email=None, role="Viewer")

    normalized = email.strip().lower()
    try:
        documents = db.find_documents(TEAM_COLLECTION, "email", normalized)
        if documents:
            member = TeamMember.model_validate(documents[0])
            return UserAccess(email=normalized, role=member.role)
        if not db.list_documents(TEAM_COLLECTION):
            logger.info(f"No team members yet, granting Admin to {normalized}")
            return UserAccess(email=normalized, role="Admin")
    except Exception as e:
        logger.error(f"❌ Error fetching role for {normalized}: {e}")
        return UserAccess(email=normalized, role="Viewer")

    logger.info(f"{normalized} is not a team member, granting Viewer access")
    return UserAccess(email=normalized, role="Viewer")
