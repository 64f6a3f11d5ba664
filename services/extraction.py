"""
Schema-validated extraction contract shared by every structured LLM call.

A call takes an instruction, at most one document attachment and a pydantic
shape. It returns either ``ExtractionSuccess`` (a validated value plus
non-blocking warnings) or ``ExtractionFailure`` (a kind and a reason). Nothing
raises past ``StructuredExtractor.extract``.

Retryable kinds (``TRANSPORT``, ``RATE_LIMITED``) go through ``RetryPolicy``,
which backs off exponentially. Everything else fails on the first attempt.
"""

import enum
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar, Union

from botocore.exceptions import BotoCoreError, ClientError, HTTPClientError, ConnectionError as BotoConnectionError
from pydantic import BaseModel, ValidationError

from utils.bedrock_client import BedrockClient, document_block, document_format_for
from utils.logging_utils import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)
R = TypeVar("R")

RATE_LIMIT_CODES = {
    "ThrottlingException",
    "ServiceQuotaExceededException",
    "TooManyRequestsException",
    "LimitExceededException",
}
TRANSIENT_CODES = {
    "ServiceUnavailableException",
    "InternalServerException",
    "ModelTimeoutException",
    "ModelNotReadyException",
    "RequestTimeout",
}


class FailureKind(str, enum.Enum):
    TRANSPORT = "transport"
    RATE_LIMITED = "rate_limited"
    UNREADABLE = "unreadable"
    REJECTED = "rejected"
    UNSUPPORTED_DOCUMENT = "unsupported_document"
    INVALID_INPUT = "invalid_input"

    @property
    def retryable(self) -> bool:
        return self in (FailureKind.TRANSPORT, FailureKind.RATE_LIMITED)


USER_MESSAGES = {
    FailureKind.TRANSPORT: "The AI service could not be reached. Please try again.",
    FailureKind.RATE_LIMITED: "The AI service is busy right now. Please try again shortly.",
    FailureKind.UNREADABLE: "Could not extract structured data. Please complete the information manually.",
    FailureKind.REJECTED: "The AI service rejected the request. Please contact support if this continues.",
    FailureKind.UNSUPPORTED_DOCUMENT: "File format not supported. Please upload a PDF, DOC, DOCX or TXT file.",
    FailureKind.INVALID_INPUT: "The file or request was empty. Please check the upload and try again.",
}


@dataclass(frozen=True)
class Attachment:
    """A document sent alongside the instruction"""
    data: bytes
    media_type: str
    name: str = "document"

    @property
    def is_supported(self) -> bool:
        return document_format_for(self.media_type) is not None

    def to_block(self) -> Dict[str, Any]:
        return document_block(self.data, self.media_type, self.name)


@dataclass(frozen=True)
class ExtractionSuccess(Generic[T]):
    value: T
    warnings: List[str] = field(default_factory=list)
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ExtractionFailure:
    kind: FailureKind
    reason: str
    message: Optional[str] = None
    ok: bool = field(default=False, init=False)

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    @property
    def user_message(self) -> str:
        return self.message or USER_MESSAGES[self.kind]


ExtractionResult = Union[ExtractionSuccess, ExtractionFailure]


class ExtractionError(Exception):
    """Internal carrier for a classified failure"""

    def __init__(self, kind: FailureKind, reason: str):
        super().__init__(reason)
        self.kind = kind
        self.reason = reason

    def to_failure(self) -> ExtractionFailure:
        return ExtractionFailure(self.kind, self.reason)


def classify_error(error: Exception) -> ExtractionError:
    """
    Map an exception from the Bedrock call path onto a failure kind

    Args:
        error: Exception raised while calling or parsing

    Returns:
        ExtractionError carrying kind and reason
    """
    if isinstance(error, ExtractionError):
        return error
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "Unknown")
        message = error.response.get("Error", {}).get("Message", str(error))
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        if code in RATE_LIMIT_CODES or status == 429:
            return ExtractionError(FailureKind.RATE_LIMITED, f"Rate limited ({code}): {message}")
        if code in TRANSIENT_CODES or status >= 500:
            return ExtractionError(FailureKind.TRANSPORT, f"Bedrock unavailable ({code}): {message}")
        return ExtractionError(FailureKind.REJECTED, f"Bedrock API error ({code}): {message}")
    if isinstance(error, (BotoConnectionError, HTTPClientError)):
        # Endpoint connection errors, dropped connections and connect/read timeouts
        return ExtractionError(FailureKind.TRANSPORT, f"Connection to Bedrock failed: {error}")
    if isinstance(error, BotoCoreError):
        return ExtractionError(FailureKind.REJECTED, f"Bedrock client error: {error}")
    if isinstance(error, (ValidationError, ValueError)):
        return ExtractionError(FailureKind.UNREADABLE, f"Model output did not match the expected shape: {error}")
    return ExtractionError(FailureKind.REJECTED, f"Unexpected error calling Bedrock: {error!r}")


class RetryPolicy:
    """Bounded retry with exponential backoff for retryable failure kinds"""

    def __init__(self, max_attempts: int = 3, base_delay: float = 1.0, max_delay: float = 8.0,
                 multiplier: float = 2.0, sleep: Callable[[float], None] = time.sleep):
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self.sleep = sleep

    @classmethod
    def from_config(cls, config) -> "RetryPolicy":
        return cls(
            max_attempts=config.llm_max_attempts,
            base_delay=config.llm_retry_base_delay,
            max_delay=config.llm_retry_max_delay,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)"""
        return min(self.base_delay * (self.multiplier ** (attempt - 1)), self.max_delay)

    def run(self, operation: Callable[[], R], label: str = "LLM call") -> R:
        """
        Run an operation, retrying retryable failures

        Raises:
            ExtractionError: The classified failure once attempts are exhausted
        """
        attempt = 1
        while True:
            try:
                return operation()
            except Exception as e:
                error = classify_error(e)
                if not error.kind.retryable or attempt >= self.max_attempts:
                    raise error
                delay = self.delay_for(attempt)
                logger.warning(
                    f"{label} failed ({error.kind.value}, attempt {attempt}/{self.max_attempts}): "
                    f"{error.reason}. Retrying in {delay:.1f}s"
                )
                self.sleep(delay)
                attempt += 1


def _missing_minimal_fields_warning(value: BaseModel) -> Optional[str]:
    names = getattr(type(value), "minimal_fields", ())
    if names and all(not getattr(value, name, None) for name in names):
        labels = " nor ".join(name.replace("_", " ") for name in names)
        return f"Neither {labels} found - extraction may be incomplete"
    return None


class StructuredExtractor:
    """Invoke the model with a target shape and validate what comes back"""

    def __init__(self, bedrock_client: BedrockClient, retry_policy: Optional[RetryPolicy] = None):
        """
        Initialize the extractor

        Args:
            bedrock_client: Bedrock client instance
            retry_policy: Retry policy (defaults to 3 attempts with backoff)
        """
        self.bedrock_client = bedrock_client
        self.retry_policy = retry_policy or RetryPolicy()

    def extract(self, instruction: str, shape: Type[T], attachment: Optional[Attachment] = None,
                tool_name: Optional[str] = None, description: Optional[str] = None,
                system_prompt: Optional[str] = None, max_tokens: int = 4096) -> ExtractionResult:
        """
        Extract a value of ``shape`` from the instruction and optional attachment

        Args:
            instruction: Natural-language instruction
            shape: Pydantic model describing the target structure
            attachment: Optional document to read
            tool_name: Name of the forced tool (defaults to record_<shape>)
            description: Tool description
            system_prompt: Optional system prompt
            max_tokens: Maximum tokens to generate

        Returns:
            ExtractionSuccess or ExtractionFailure
        """
        if not instruction or not instruction.strip():
            return ExtractionFailure(FailureKind.INVALID_INPUT, "Instruction is empty")

        content: List[Dict[str, Any]] = [{"text": instruction}]
        if attachment is not None:
            if not attachment.data:
                return ExtractionFailure(FailureKind.INVALID_INPUT, "Attached document is empty")
            if not attachment.is_supported:
                return ExtractionFailure(
                    FailureKind.UNSUPPORTED_DOCUMENT,
                    f"Unsupported document media type: {attachment.media_type}",
                )
            content.append(attachment.to_block())

        tool_name = tool_name or f"record_{_snake(shape.__name__)}"
        description = description or (shape.__doc__ or "Record the extracted data").strip()
        schema = shape.model_json_schema(by_alias=True)

        def call_and_validate() -> T:
            raw = self.bedrock_client.invoke_tool(
                content, tool_name, description, schema,
                system_prompt=system_prompt, max_tokens=max_tokens,
            )
            return shape.model_validate(raw)

        try:
            value = self.retry_policy.run(call_and_validate, label=tool_name)
        except ExtractionError as e:
            logger.error(f"❌ {tool_name} failed ({e.kind.value}): {e.reason}")
            return e.to_failure()

        warnings = []
        minimal_warning = _missing_minimal_fields_warning(value)
        if minimal_warning:
            logger.warning(f"⚠️ {tool_name}: {minimal_warning}")
            warnings.append(minimal_warning)

        return ExtractionSuccess(value, warnings)


def _snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name).lstrip("_")
