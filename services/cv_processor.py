"""
CV processing service - extracts a structured candidate profile from a resume file
"""

from datetime import date
from typing import Optional

from config import Config
from models.candidate import CandidateProfile, ResumeExtraction
from services.experience_calculator import ExperienceCalculator
from services.extraction import (
    Attachment,
    ExtractionFailure,
    ExtractionResult,
    ExtractionSuccess,
    FailureKind,
    RetryPolicy,
    StructuredExtractor,
)
from utils.bedrock_client import BedrockClient
from utils.document_text import DocumentTextExtractor
from utils.logging_utils import get_logger
from utils.storage import media_type_for

logger = get_logger(__name__)

YOE_MISSING_WARNING = "Total years of experience not extracted - work history may be unclear"
TITLE_MISSING_WARNING = "Current job title not found"


class CVProcessor:
    """Process CVs to extract structured information"""

    def __init__(self, bedrock_client: Optional[BedrockClient] = None, config: Optional[Config] = None,
                 extractor: Optional[StructuredExtractor] = None):
        """
        Initialize CV processor

        Args:
            bedrock_client: Bedrock client instance
            config: Configuration instance
            extractor: Structured extractor (defaults to one over bedrock_client)
        """
        self.config = config or Config()
        if extractor is None:
            bedrock_client = bedrock_client or BedrockClient(
                region_name=self.config.aws_region,
                model_id=self.config.bedrock_model_id,
                read_timeout=self.config.bedrock_read_timeout,
                connect_timeout=self.config.bedrock_connect_timeout,
            )
            extractor = StructuredExtractor(bedrock_client, RetryPolicy.from_config(self.config))
        self.extractor = extractor

    @property
    def evaluation_date(self) -> date:
        return self.config.evaluation_date or date.today()

    def build_prompt(self) -> str:
        today = self.evaluation_date
        return f"""You are an expert recruitment assistant for {self.config.agency_name}, recruiting in {self.config.jurisdiction}.

Extract structured candidate information from the attached resume and record it with the tool provided.

Contact details:
- fullName: the candidate's complete name, usually at the top
- email, phone (keep the original format) and linkedinUrl if present

Current position:
- currentJobTitle and currentCompany: the MOST RECENT entry in the work history
- location: city and province/state, e.g. "Toronto, ON"

Experience:
- statedYearsOfExperience: fill this ONLY if the resume literally says "X years of experience"
- employmentHistory: every position with title, company, start and end
  - dates as YYYY-MM, or YYYY when only the year is given
  - end is "Present" for a current role
- totalYOE: your own estimate of total professional years as of {today:%B %Y}, counting overlapping roles once

Skills:
- primarySkill: the main domain or specialty
- secondarySkills: up to 10 further skills, tools and technologies, most relevant first

Compensation:
- desiredSalary: only if explicitly stated, e.g. "$120,000" or "$75/hour"

Rules:
- Use null for anything the resume does not contain
- Never invent or guess information
- Read the whole resume before filling in the experience fields"""

    def parse_resume(self, file_bytes: bytes, filename: str, media_type: Optional[str] = None) -> ExtractionResult:
        """
        Parse a resume file into a candidate profile

        Args:
            file_bytes: Uploaded file content
            filename: Original file name
            media_type: Declared media type, if the upload carried one

        Returns:
            ExtractionSuccess with a CandidateProfile and warnings, or ExtractionFailure
        """
        if not file_bytes:
            return ExtractionFailure(FailureKind.INVALID_INPUT, "Uploaded file is empty")

        resolved_type = media_type_for(filename, media_type)
        if not resolved_type:
            return ExtractionFailure(
                FailureKind.UNSUPPORTED_DOCUMENT,
                f"Could not determine the document type of {filename}",
            )

        logger.info(f"Parsing resume {filename} ({resolved_type}, {len(file_bytes)} bytes)")
        attachment = Attachment(data=file_bytes, media_type=resolved_type, name=filename)
        result = self.extractor.extract(
            self.build_prompt(),
            ResumeExtraction,
            attachment=attachment,
            tool_name="record_candidate_profile",
            description="Record the candidate profile extracted from the resume",
        )
        if not result.ok:
            return result

        extraction: ResumeExtraction = result.value
        document_text = DocumentTextExtractor.extract_text(file_bytes, resolved_type)
        years, source = ExperienceCalculator.estimate_total_years(
            document_text,
            extraction.stated_years_of_experience,
            extraction.employment_history,
            extraction.total_yoe,
            today=self.evaluation_date,
        )
        logger.info(f"Years of experience for {filename}: {years} (source: {source})")

        profile: CandidateProfile = extraction.to_profile(total_yoe=years)
        warnings = list(result.warnings)
        if profile.total_yoe is None:
            warnings.append(YOE_MISSING_WARNING)
        if not profile.current_job_title:
            warnings.append(TITLE_MISSING_WARNING)
        for warning in warnings[len(result.warnings):]:
            logger.warning(f"⚠️ {filename}: {warning}")

        return ExtractionSuccess(profile, warnings)
