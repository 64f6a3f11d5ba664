"""
RatingAgent - Generates missing applicant ratings one at a time
"""

from dataclasses import dataclass, field
from typing import List, Optional

import psycopg2

from models.candidate import Applicant
from models.conversation import DataSnapshot
from services.data_snapshot import APPLICANTS, load_snapshot
from services.extraction import ExtractionFailure, ExtractionResult, ExtractionSuccess, FailureKind
from services.matching_engine import MatchingEngine
from utils.logging_utils import get_logger
from utils.rate_limiter import TokenBucket

logger = get_logger(__name__)

DATABASE_UNAVAILABLE_MESSAGE = "Could not reach the database. Please try again."
RATING_NOT_SAVED_WARNING = "Rating could not be saved - please try again"


@dataclass
class RatingSummary:
    rated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.rated) + len(self.failed) + len(self.skipped)


class RatingAgent:
    """Rates applicants that have no rating yet"""

    def __init__(self, db_manager, matching_engine: MatchingEngine, limiter: Optional[TokenBucket] = None):
        """
        Initialize RatingAgent

        Args:
            db_manager: Document store
            matching_engine: Engine producing the analysis
            limiter: Throttle applied before each model call
        """
        self.db_manager = db_manager
        self.matching_engine = matching_engine
        self.limiter = limiter or TokenBucket.from_config(matching_engine.config)

    def _load_snapshot(self) -> Optional[DataSnapshot]:
        try:
            return load_snapshot(self.db_manager)
        except psycopg2.Error as e:
            logger.error(f"❌ Could not load records for rating: {e}")
            return None

    def _rate(self, applicant: Applicant, job_orders) -> ExtractionResult:
        self.limiter.acquire()
        result = self.matching_engine.analyze_applicant(applicant, job_orders)
        if not result.ok or result.value.overall_rating is None:
            return result

        rating = result.value.overall_rating
        try:
            self.db_manager.update_document(APPLICANTS, applicant.id, {"rating": rating})
        except psycopg2.Error as e:
            logger.error(f"❌ Could not save rating for {applicant.full_name or applicant.id}: {e}")
            return ExtractionSuccess(result.value, list(result.warnings) + [RATING_NOT_SAVED_WARNING])

        logger.info(f"✅ Rated {applicant.full_name or applicant.id}: {rating}/10")
        return result

    def rate_applicant(self, applicant_id: str) -> ExtractionResult:
        """
        Analyze one applicant by id and store the rating

        Returns:
            The analysis result. If the rating could not be stored the result
            carries RATING_NOT_SAVED_WARNING.
        """
        snapshot = self._load_snapshot()
        if snapshot is None:
            return ExtractionFailure(FailureKind.TRANSPORT, "Applicant records could not be loaded",
                                     message=DATABASE_UNAVAILABLE_MESSAGE)
        applicant = snapshot.find_applicant(applicant_id)
        if applicant is None:
            return ExtractionFailure(FailureKind.INVALID_INPUT, f"Applicant {applicant_id} not found")
        return self._rate(applicant, snapshot.job_orders)

    def generate_missing_ratings(self) -> RatingSummary:
        """
        Rate every applicant without a rating, sequentially

        Returns:
            Ids of rated, failed and skipped applicants
        """
        summary = RatingSummary()
        snapshot = self._load_snapshot()
        if snapshot is None:
            summary.error = DATABASE_UNAVAILABLE_MESSAGE
            return summary

        unrated = snapshot.unrated_applicants()
        logger.info(f"Generating ratings for {len(unrated)} of {len(snapshot.applicants)} applicants")

        if not snapshot.open_job_orders():
            logger.warning("⚠️ No open job orders, skipping rating generation")
            summary.skipped.extend(applicant.id for applicant in unrated)
            return summary

        for applicant in unrated:
            result = self._rate(applicant, snapshot.job_orders)
            if not result.ok:
                logger.error(f"❌ Rating failed for {applicant.full_name or applicant.id}: {result.reason}")
                summary.failed.append(applicant.id)
            elif RATING_NOT_SAVED_WARNING in result.warnings:
                summary.failed.append(applicant.id)
            elif result.value.overall_rating is None:
                summary.skipped.append(applicant.id)
            else:
                summary.rated.append(applicant.id)

        logger.info(
            f"Rating generation finished: {len(summary.rated)} rated, "
            f"{len(summary.failed)} failed, {len(summary.skipped)} skipped"
        )
        return summary
