"""
Orchestrator Agent - Coordinates storage, extraction, analysis and the assistant
"""

from typing import Any, Dict, List, Optional, Sequence

import psycopg2
from botocore.exceptions import BotoCoreError, ClientError

from agents.assistant_agent import AssistantAgent
from agents.rating_agent import RatingAgent, RatingSummary
from config import Config
from models.candidate import Applicant
from models.conversation import ChatMessage, ChatReply, DataSnapshot
from models.job_order import Client, JobOrder, TeamMember
from services.cv_processor import CVProcessor
from services.data_snapshot import APPLICANTS, CLIENTS, JOB_ORDERS, load_snapshot
from services.email_service import EmailService
from services.extraction import ExtractionResult, RetryPolicy, StructuredExtractor
from services.matching_engine import MatchingEngine
from services.team_access import TEAM_COLLECTION, UserAccess, resolve_user_access
from utils.bedrock_client import BedrockClient
from utils.database import DatabaseManager
from utils.logging_utils import get_logger
from utils.rate_limiter import TokenBucket
from utils.storage import ResumeStorage

logger = get_logger(__name__)


class Orchestrator:
    """Main orchestrator agent that coordinates the workflow"""

    def __init__(self, db_manager: DatabaseManager, bedrock_client: BedrockClient, config: Config,
                 storage: Optional[ResumeStorage] = None, email_service: Optional[EmailService] = None,
                 limiter: Optional[TokenBucket] = None):
        """
        Initialize orchestrator

        Args:
            db_manager: Database manager instance
            bedrock_client: Bedrock client instance
            config: Configuration instance
            storage: Resume storage
            email_service: Invitation email sender
            limiter: Throttle for bulk rating
        """
        self.db_manager = db_manager
        self.bedrock_client = bedrock_client
        self.config = config
        self.storage = storage
        self.email_service = email_service

        # Initialize sub-agents
        extractor = StructuredExtractor(bedrock_client, RetryPolicy.from_config(config))
        self.cv_processor = CVProcessor(config=config, extractor=extractor)
        self.matching_engine = MatchingEngine(config=config, storage=storage, extractor=extractor)
        self.rating_agent = RatingAgent(db_manager, self.matching_engine, limiter)
        self.assistant_agent = AssistantAgent(bedrock_client, config, storage)

    def load_snapshot(self) -> DataSnapshot:
        return load_snapshot(self.db_manager)

    def parse_resume(self, file_bytes: bytes, filename: str, media_type: Optional[str] = None) -> ExtractionResult:
        return self.cv_processor.parse_resume(file_bytes, filename, media_type)

    def upload_resume(self, file_bytes: bytes, filename: str, media_type: Optional[str] = None) -> Dict[str, Any]:
        """
        Store a resume file

        Returns:
            {"success": True, "key": ...} or {"success": False, "error": ...}
        """
        if self.storage is None:
            return {"success": False, "error": "Resume storage is not configured"}
        try:
            return {"success": True, "key": self.storage.upload(file_bytes, filename, media_type)}
        except (ClientError, BotoCoreError) as e:
            logger.error(f"❌ Resume upload failed for {filename}: {e}")
            return {"success": False, "error": f"Resume upload failed: {e}"}

    def resume_url(self, applicant: Applicant) -> Optional[str]:
        if not applicant.resume or self.storage is None:
            return None
        return self.storage.create_presigned_url(applicant.resume)

    def add_applicant(self, applicant: Applicant, generate_rating: bool = True) -> Dict[str, Any]:
        """
        Save a new applicant and optionally rate them straight away

        Args:
            applicant: Applicant to store (id is assigned by the store)
            generate_rating: Run the analysis and store the rating

        Returns:
            Result bundle with success, id, and the analysis result when rated
        """
        try:
            applicant_id = self.db_manager.add_document(APPLICANTS, applicant.to_document())
        except psycopg2.Error as e:
            logger.error(f"❌ Failed to save applicant {applicant.full_name}: {e}")
            return {"success": False, "error": f"Failed to save applicant: {e}"}

        logger.info(f"✅ Added applicant {applicant.full_name} ({applicant_id})")
        result_bundle: Dict[str, Any] = {"success": True, "id": applicant_id, "analysis": None}
        if generate_rating:
            result_bundle["analysis"] = self.analyze_applicant(applicant_id)
        return result_bundle

    def analyze_applicant(self, applicant_id: str) -> ExtractionResult:
        """Analyze an applicant against open job orders and store the rating"""
        return self.rating_agent.rate_applicant(applicant_id)

    def generate_missing_ratings(self) -> RatingSummary:
        return self.rating_agent.generate_missing_ratings()

    def update_applicant(self, applicant_id: str, fields: Dict[str, Any]) -> bool:
        return self.db_manager.update_document(APPLICANTS, applicant_id, fields)

    def delete_applicant(self, applicant_id: str) -> bool:
        return self.db_manager.delete_document(APPLICANTS, applicant_id)

    def add_job_order(self, job_order: JobOrder) -> str:
        return self.db_manager.add_document(JOB_ORDERS, job_order.to_document())

    def update_job_order(self, job_id: str, fields: Dict[str, Any]) -> bool:
        return self.db_manager.update_document(JOB_ORDERS, job_id, fields)

    def add_client(self, client: Client) -> str:
        return self.db_manager.add_document(CLIENTS, client.to_document())

    def chat(self, message: str, history: Sequence[ChatMessage]) -> ChatReply:
        """Answer an assistant message against a fresh snapshot"""
        try:
            snapshot = self.load_snapshot()
        except psycopg2.Error as e:
            logger.error(f"❌ Could not load data for the assistant: {e}")
            return ChatReply(success=False, message="I couldn't load the current data. Please try again.",
                             error=str(e))
        return self.assistant_agent.respond(message, history, snapshot)

    def resolve_access(self, email: Optional[str]) -> UserAccess:
        return resolve_user_access(self.db_manager, email)

    def list_team_members(self) -> List[TeamMember]:
        return [TeamMember.model_validate(doc) for doc in self.db_manager.list_documents(TEAM_COLLECTION)]

    def invite_team_member(self, email: str, name: str, role: str, invited_by: str) -> Dict[str, Any]:
        """
        Store a team member and send their invitation

        Returns:
            Result dict with success, id, and the email outcome
        """
        member = TeamMember(email=email, name=name, role=role, invited_by=invited_by)
        if self.db_manager.find_documents(TEAM_COLLECTION, "email", member.email):
            return {"success": False, "error": f"{member.email} is already a team member"}

        try:
            member_id = self.db_manager.add_document(TEAM_COLLECTION, member.to_document())
        except psycopg2.Error as e:
            logger.error(f"❌ Failed to save team member {member.email}: {e}")
            return {"success": False, "error": f"Failed to save team member: {e}"}

        if self.email_service is None:
            email_result = {"success": False, "error": "Email service not configured"}
        else:
            email_result = self.email_service.send_invite_email(member.email, name, role, invited_by)
        return {"success": True, "id": member_id, "email": email_result}
