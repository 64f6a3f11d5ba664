"""
Matching engine - rates an applicant and scores them against open job orders
"""

from typing import Dict, List, Optional, Sequence

from config import MIN_MATCH_SCORE_THRESHOLD, Config
from models.analysis import AnalysisExtraction, CandidateAnalysis, JobMatch, RequisitionAssessment
from models.candidate import Applicant
from models.job_order import JobOrder
from services.extraction import (
    ExtractionResult,
    ExtractionSuccess,
    RetryPolicy,
    StructuredExtractor,
)
from services.prompt_context import format_applicant_block, format_job_block
from utils.bedrock_client import BedrockClient
from utils.logging_utils import get_logger
from utils.storage import ResumeStorage

logger = get_logger(__name__)

# Sub-score weights of the fit score (sum to 1.0)
EXPERIENCE_WEIGHT = 0.40
SKILL_WEIGHT = 0.30
COMPENSATION_LOCATION_WEIGHT = 0.20
SENIORITY_WEIGHT = 0.10

NO_OPEN_POSITIONS_SUMMARY = "No open positions available to match this candidate against."
NO_OPEN_POSITIONS_POINT = "No open job orders available for matching"
RESUME_UNAVAILABLE_WARNING = "Resume could not be retrieved - analysis used structured data only"
INCOMPLETE_ASSESSMENTS_WARNING = "Some job order assessments were incomplete and were skipped"


class MatchingEngine:
    """Candidate rating and job order matching"""

    def __init__(self, bedrock_client: Optional[BedrockClient] = None, config: Optional[Config] = None,
                 storage: Optional[ResumeStorage] = None, extractor: Optional[StructuredExtractor] = None):
        """
        Initialize matching engine

        Args:
            bedrock_client: Bedrock client instance
            config: Configuration instance
            storage: Resume storage used to attach the applicant's resume
            extractor: Structured extractor (defaults to one over bedrock_client)
        """
        self.config = config or Config()
        self.storage = storage
        if extractor is None:
            bedrock_client = bedrock_client or BedrockClient(
                region_name=self.config.aws_region,
                model_id=self.config.bedrock_model_id,
                read_timeout=self.config.bedrock_read_timeout,
                connect_timeout=self.config.bedrock_connect_timeout,
            )
            extractor = StructuredExtractor(bedrock_client, RetryPolicy.from_config(self.config))
        self.extractor = extractor

    @staticmethod
    def calculate_fit_score(assessment: RequisitionAssessment) -> int:
        """
        Weighted fit score (0-100) from the four sub-scores

        Args:
            assessment: Model assessment of one job order

        Returns:
            Rounded score
        """
        score = (
            EXPERIENCE_WEIGHT * assessment.experience_fit +
            SKILL_WEIGHT * assessment.skill_overlap +
            COMPENSATION_LOCATION_WEIGHT * assessment.compensation_location_fit +
            SENIORITY_WEIGHT * assessment.seniority_fit
        )
        return int(round(min(max(score, 0.0), 100.0)))

    def select_matches(self, assessments: Sequence[RequisitionAssessment],
                       open_jobs: Sequence[JobOrder]) -> List[JobMatch]:
        """
        Apply the eligibility filter and score threshold

        Assessments for a different role category, or for job orders that are not
        open, are dropped before scoring.

        Returns:
            Matches at or above the threshold, highest score first
        """
        jobs_by_id: Dict[str, JobOrder] = {job.id: job for job in open_jobs}
        threshold = max(self.config.match_score_threshold, MIN_MATCH_SCORE_THRESHOLD)
        matches: Dict[str, JobMatch] = {}

        for assessment in assessments:
            job = jobs_by_id.get(assessment.job_id)
            if job is None:
                logger.debug(f"Ignoring assessment for unknown or closed job order {assessment.job_id}")
                continue
            if not assessment.role_match:
                logger.info(f"Excluded {job.job_title} ({job.id}): role category mismatch")
                continue

            score = self.calculate_fit_score(assessment)
            if score < threshold:
                continue

            match = JobMatch(
                job_id=job.id,
                job_title=job.job_title,
                match_score=score,
                match_reason=assessment.match_reason or "Meets the core requirements of the role.",
                concerns=assessment.concerns,
            )
            # Keep the best assessment if the model repeated a job order
            if job.id not in matches or matches[job.id].match_score < score:
                matches[job.id] = match

        return sorted(matches.values(), key=lambda m: m.match_score, reverse=True)

    def build_prompt(self, applicant: Applicant, open_jobs: Sequence[JobOrder], has_resume: bool) -> str:
        jurisdiction = self.config.jurisdiction
        jobs_text = "\n\n".join(format_job_block(job, index) for index, job in enumerate(open_jobs, start=1))
        resume_note = (
            "The applicant's resume is attached. Treat it as the primary source."
            if has_resume else
            "No resume is available. Work from the structured data only."
        )
        return f"""You are a senior recruiter at {self.config.agency_name}, recruiting in {jurisdiction}.

Assess the candidate below and record your assessment with the tool provided.

How to judge:
1. Relevant {jurisdiction} experience matters most. Earlier careers elsewhere are context, not a weakness.
2. Long total tenure outweighs a few short roles. Do not penalize senior candidates for them.
3. Core tasks of the candidate's profession are essential functions, not clerical work.

{resume_note}

CANDIDATE (structured data, verify against the resume):
{format_applicant_block(applicant, include_id=False)}

OPEN JOB ORDERS:
{jobs_text}

Record:
- overallRating: 1-10, based on relevant experience and depth of skills (8-10 excellent, 1-3 weak)
- pros: 3-5 strengths, including total years of relevant experience
- potentialDiscussionPoints: 2-4 topics framed as interview questions, never as weaknesses
- summary: 2-3 sentences on the candidate's relevant role and experience
- requisitionAssessments: one entry for EVERY job order above, with its exact jobId
  - roleMatch: true only if the candidate's profession is the same category as the job's
    (a Law Clerk is not a match for a Productions Clerk, which is a logistics role)
  - experienceFit: 0-100, years doing this exact type of work
  - skillOverlap: 0-100, overlap with the job's core responsibilities
  - compensationLocationFit: 0-100, salary and location compatibility
  - seniorityFit: 0-100, seniority level fit
  - matchReason and any concerns"""

    def analyze_applicant(self, applicant: Applicant, job_orders: Sequence[JobOrder]) -> ExtractionResult:
        """
        Rate an applicant and match them against open job orders

        Args:
            applicant: Applicant record
            job_orders: All job orders (closed ones are ignored)

        Returns:
            ExtractionSuccess with a CandidateAnalysis, or ExtractionFailure
        """
        open_jobs = [job for job in job_orders if job.is_open_for_matching and job.id]
        logger.info(f"Analyzing applicant {applicant.full_name or applicant.id} against {len(open_jobs)} open job orders")

        if not open_jobs:
            return ExtractionSuccess(CandidateAnalysis(
                overall_rating=None,
                pros=[],
                potential_discussion_points=[NO_OPEN_POSITIONS_POINT],
                summary=NO_OPEN_POSITIONS_SUMMARY,
                job_matches=[],
            ))

        warnings = []
        attachment = None
        if applicant.resume:
            attachment = self.storage.fetch(applicant.resume) if self.storage else None
            if attachment is not None and not attachment.data:
                logger.warning(f"⚠️ Resume {applicant.resume} is empty")
                attachment = None
            elif attachment is not None and not attachment.is_supported:
                logger.warning(f"⚠️ Resume {applicant.resume} has unsupported type {attachment.media_type}")
                attachment = None
            if attachment is None:
                warnings.append(RESUME_UNAVAILABLE_WARNING)

        result = self.extractor.extract(
            self.build_prompt(applicant, open_jobs, attachment is not None),
            AnalysisExtraction,
            attachment=attachment,
            tool_name="record_candidate_assessment",
            description="Record the candidate rating, strengths, discussion points and per-job assessments",
        )
        if not result.ok:
            return result

        extraction: AnalysisExtraction = result.value
        if extraction.skipped_assessments:
            logger.warning(f"⚠️ Skipped {extraction.skipped_assessments} incomplete job order assessments")
            warnings.append(INCOMPLETE_ASSESSMENTS_WARNING)
        matches = self.select_matches(extraction.requisition_assessments, open_jobs)
        logger.info(f"✅ Analysis complete: rating {extraction.overall_rating}, {len(matches)} job matches")

        analysis = CandidateAnalysis(
            overall_rating=extraction.overall_rating,
            pros=extraction.pros,
            potential_discussion_points=extraction.potential_discussion_points,
            summary=extraction.summary,
            job_matches=matches,
        )
        return ExtractionSuccess(analysis, warnings + list(result.warnings))
