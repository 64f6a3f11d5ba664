"""
AssistantAgent - Answers recruiter questions about the current data
"""

import re
from typing import Any, Dict, List, Optional, Sequence

from config import Config
from models.conversation import ChatMessage, ChatReply, DataSnapshot
from services.extraction import ExtractionError, FailureKind, RetryPolicy
from services.prompt_context import format_snapshot
from utils.bedrock_client import BedrockClient
from utils.logging_utils import get_logger
from utils.storage import ResumeStorage

logger = get_logger(__name__)

RESUME_KEYWORDS = re.compile(r"\b(?:r[eé]sum[eé]s?|cvs?|curriculum\s+vitae)\b", re.IGNORECASE)

APOLOGY = "I'm sorry, I ran into a problem answering that. Please try again."
RATE_LIMITED_APOLOGY = "I'm sorry, the AI service is busy right now. Please try again shortly."


def mentions_resumes(message: str) -> bool:
    return bool(RESUME_KEYWORDS.search(message or ""))


def normalize_history(history: Sequence[ChatMessage], limit: int) -> List[ChatMessage]:
    """
    Keep the most recent turns, starting with a user turn and alternating roles

    Consecutive turns from the same role are merged.
    """
    recent = list(history)[-limit:] if limit > 0 else []
    while recent and recent[0].role != "user":
        recent.pop(0)

    normalized: List[ChatMessage] = []
    for turn in recent:
        if not turn.content or not turn.content.strip():
            continue
        if normalized and normalized[-1].role == turn.role:
            normalized[-1] = ChatMessage(role=turn.role, content=f"{normalized[-1].content}\n\n{turn.content}")
        else:
            normalized.append(turn)
    return normalized


class AssistantAgent:
    """Conversational assistant grounded in the applicant, job order and client data"""

    def __init__(self, bedrock_client: BedrockClient, config: Config,
                 storage: Optional[ResumeStorage] = None, retry_policy: Optional[RetryPolicy] = None):
        """
        Initialize AssistantAgent

        Args:
            bedrock_client: Bedrock client instance
            config: Configuration instance
            storage: Resume storage for attaching resumes on request
            retry_policy: Retry policy for the model call
        """
        self.bedrock_client = bedrock_client
        self.config = config
        self.storage = storage
        self.retry_policy = retry_policy or RetryPolicy.from_config(config)

    def build_system_prompt(self, snapshot: DataSnapshot) -> str:
        return f"""You are an expert recruitment assistant for {self.config.agency_name}, recruiting in {self.config.jurisdiction}.

You have access to the agency's data:
- {len(snapshot.applicants)} applicants
- {len(snapshot.job_orders)} job orders
- {len(snapshot.clients)} clients

What you can do:
- Search and filter candidates by skills, experience, location, availability, salary or status
- Match candidates to job orders, weighing skills, experience level, location, salary and availability
- Read attached resumes and report on work history, achievements, education and certifications
- Rank and compare candidates and explain the ranking
- Keep track of the conversation so far

Rules:
- Refer to candidates by full name only, never by ID
- When listing candidates include name, current role, experience, key skills and whether a resume is available
- Ask a clarifying question when the criteria are vague

Formatting:
- Plain text only, no markdown such as **bold** or *italic*
- Use dashes (-) for lists and "Heading:" lines for sections

CURRENT DATA:

{format_snapshot(snapshot)}

Answer using the actual data above wherever possible."""

    def _resume_blocks(self, snapshot: DataSnapshot) -> List[Dict[str, Any]]:
        if self.storage is None:
            return []
        blocks: List[Dict[str, Any]] = []
        attached = 0
        for applicant in snapshot.applicants:
            if attached >= self.config.chat_resume_limit:
                break
            if not applicant.resume:
                continue
            attachment = self.storage.fetch(applicant.resume)
            if attachment is None or not attachment.data or not attachment.is_supported:
                logger.warning(f"⚠️ Skipping resume for {applicant.full_name}: not retrievable")
                continue
            attached += 1
            blocks.append({"text": f"[Resume for {applicant.full_name or 'Unknown'}]"})
            # Document names must be unique within a request
            block = attachment.to_block()
            block["document"]["name"] = f"Resume {attached} {block['document']['name']}"[:200]
            blocks.append(block)
        return blocks

    def respond(self, message: str, history: Sequence[ChatMessage], snapshot: DataSnapshot) -> ChatReply:
        """
        Answer a recruiter's message

        Args:
            message: The new user message
            history: Earlier turns of the conversation
            snapshot: Current applicants, job orders and clients

        Returns:
            ChatReply; failures carry an apology as the message
        """
        if not message or not message.strip():
            return ChatReply(success=False, message="Please enter a question.", error=FailureKind.INVALID_INPUT.value)

        turns = normalize_history(history, self.config.chat_history_limit)
        if turns and turns[-1].role == "user":
            turns.pop()

        content: List[Dict[str, Any]] = [{"text": message.strip()}]
        resume_blocks = self._resume_blocks(snapshot) if mentions_resumes(message) else []
        if resume_blocks:
            content.extend(resume_blocks)
            content.append({"text": "Use the resumes above to answer the question."})
        resumes_attached = sum(1 for block in resume_blocks if "document" in block)

        messages = [{"role": turn.role, "content": [{"text": turn.content}]} for turn in turns]
        messages.append({"role": "user", "content": content})
        logger.info(f"Assistant request: {len(turns)} history turns, {resumes_attached} resumes attached")

        try:
            reply = self.retry_policy.run(
                lambda: self.bedrock_client.invoke_text(
                    messages,
                    system_prompt=self.build_system_prompt(snapshot),
                    max_tokens=2000,
                    temperature=0.7,
                ),
                label="assistant",
            )
        except ExtractionError as e:
            logger.error(f"❌ Assistant call failed ({e.kind.value}): {e.reason}")
            apology = RATE_LIMITED_APOLOGY if e.kind == FailureKind.RATE_LIMITED else APOLOGY
            return ChatReply(success=False, message=apology, error=e.kind.value, resumes_attached=resumes_attached)

        if not reply:
            return ChatReply(success=False, message=APOLOGY, error=FailureKind.UNREADABLE.value,
                             resumes_attached=resumes_attached)
        return ChatReply(success=True, message=reply, resumes_attached=resumes_attached)
