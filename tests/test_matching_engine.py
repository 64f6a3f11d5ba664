"""
Tests for applicant analysis and job matching
"""
import pytest

from models.analysis import RequisitionAssessment
from models.candidate import Applicant
from models.job_order import JobOrder
from services.extraction import Attachment, FailureKind, StructuredExtractor
from services.matching_engine import (
    INCOMPLETE_ASSESSMENTS_WARNING,
    NO_OPEN_POSITIONS_POINT,
    NO_OPEN_POSITIONS_SUMMARY,
    RESUME_UNAVAILABLE_WARNING,
    MatchingEngine,
)
from tests.conftest import FakeResumeStorage, StubBedrockClient

LAW_CLERK = Applicant(
    id="a1",
    full_name="Maria Silva",
    current_job_title="Senior Law Clerk",
    current_company="Smith Injury Law",
    total_yoe=19,
    primary_skill="Accident Benefits",
    location="Toronto, ON",
    resume="resumes/maria.pdf",
)

AB_CLERK = JobOrder(id="j1", job_title="Accident Benefits Clerk", client_company="Jones LLP", status="Open")
PRODUCTIONS_CLERK = JobOrder(id="j2", job_title="Productions Clerk", client_company="Warehouse Co", status="Interviewing")
LITIGATION_CLERK = JobOrder(id="j3", job_title="Litigation Clerk", client_company="Brown LLP", status="Open")
CLOSED_JOB = JobOrder(id="j4", job_title="Law Clerk", client_company="Old Client", status="Placed")


def assessment(job_id, role_match=True, score=90, **overrides):
    data = {
        "jobId": job_id,
        "roleMatch": role_match,
        "experienceFit": score,
        "skillOverlap": score,
        "compensationLocationFit": score,
        "seniorityFit": score,
        "matchReason": f"Fits {job_id}",
    }
    data.update(overrides)
    return data


def analysis_response(*assessments, rating=8.5):
    return {
        "overallRating": rating,
        "pros": ["19 years of experience as a Law Clerk in Toronto", "Accident Benefits files"],
        "potentialDiscussionPoints": ["Weakness: several short roles; worth discussing"],
        "summary": "Senior law clerk with deep accident benefits experience.",
        "requisitionAssessments": list(assessments),
    }


@pytest.fixture
def make_engine(config, no_sleep_policy):
    def factory(*responses, storage=None):
        stub = StubBedrockClient(responses=list(responses))
        engine = MatchingEngine(
            config=config,
            storage=storage if storage is not None else FakeResumeStorage(),
            extractor=StructuredExtractor(stub, no_sleep_policy),
        )
        return engine, stub
    return factory


class TestFitScore:
    """Weighted fit score"""

    def test_weights(self):
        """40/30/20/10 weighting, rounded"""
        item = RequisitionAssessment(
            job_id="j1", role_match=True,
            experience_fit=100, skill_overlap=50, compensation_location_fit=25, seniority_fit=0,
        )
        assert MatchingEngine.calculate_fit_score(item) == 60

    def test_rounding(self):
        """Half points round to the nearest integer"""
        item = RequisitionAssessment(
            job_id="j1", role_match=True,
            experience_fit=71, skill_overlap=64, compensation_location_fit=60, seniority_fit=50,
        )
        # 28.4 + 19.2 + 12 + 5 = 64.6
        assert MatchingEngine.calculate_fit_score(item) == 65


class TestAnalyzeApplicant:
    """MatchingEngine.analyze_applicant"""

    def test_no_open_jobs_fast_path(self, make_engine):
        """No open job orders returns immediately without a model call"""
        engine, stub = make_engine()
        result = engine.analyze_applicant(LAW_CLERK, [CLOSED_JOB])

        assert result.ok
        analysis = result.value
        assert analysis.overall_rating is None
        assert analysis.job_matches == []
        assert analysis.summary == NO_OPEN_POSITIONS_SUMMARY
        assert analysis.potential_discussion_points == [NO_OPEN_POSITIONS_POINT]
        assert stub.tool_calls == []

    def test_role_mismatch_excluded(self, make_engine):
        """A Law Clerk is never matched to a Productions Clerk requisition"""
        engine, _ = make_engine(analysis_response(
            assessment("j1", score=92),
            assessment("j2", role_match=False, score=95),
        ))
        result = engine.analyze_applicant(LAW_CLERK, [AB_CLERK, PRODUCTIONS_CLERK])

        assert result.ok
        assert [m.job_id for m in result.value.job_matches] == ["j1"]

    def test_threshold_and_ordering(self, make_engine):
        """Scores below the threshold are dropped and the rest sorted"""
        engine, _ = make_engine(analysis_response(
            assessment("j1", score=70),
            assessment("j3", score=88),
            assessment("j2", score=50),
        ))
        result = engine.analyze_applicant(LAW_CLERK, [AB_CLERK, PRODUCTIONS_CLERK, LITIGATION_CLERK])

        matches = result.value.job_matches
        assert [m.job_id for m in matches] == ["j3", "j1"]
        assert all(65 <= m.match_score <= 100 for m in matches)

    def test_unknown_and_closed_jobs_ignored(self, make_engine):
        """Assessments for job orders that are not open are dropped"""
        engine, _ = make_engine(analysis_response(
            assessment("j4", score=99),
            assessment("nope", score=99),
        ))
        result = engine.analyze_applicant(LAW_CLERK, [AB_CLERK, CLOSED_JOB])

        assert result.value.job_matches == []

    def test_job_title_from_records(self, make_engine):
        """Titles come from the job order, not the model"""
        engine, _ = make_engine(analysis_response(assessment("j1", jobTitle="Something Else")))
        result = engine.analyze_applicant(LAW_CLERK, [AB_CLERK])

        assert result.value.job_matches[0].job_title == "Accident Benefits Clerk"

    def test_rating_and_discussion_points_cleaned(self, make_engine):
        """Ratings are clamped and deficit labels removed"""
        engine, _ = make_engine(analysis_response(assessment("j1"), rating=0))
        result = engine.analyze_applicant(LAW_CLERK, [AB_CLERK])

        analysis = result.value
        assert analysis.overall_rating == 1.0
        assert analysis.potential_discussion_points == ["several short roles; worth discussing"]

    def test_resume_attached(self, make_engine):
        """The applicant's resume goes to the model as a document"""
        storage = FakeResumeStorage({
            "resumes/maria.pdf": Attachment(data=b"%PDF", media_type="application/pdf", name="maria.pdf"),
        })
        engine, stub = make_engine(analysis_response(assessment("j1")), storage=storage)
        result = engine.analyze_applicant(LAW_CLERK, [AB_CLERK])

        assert result.ok
        assert result.warnings == []
        content = stub.tool_calls[0]["content"]
        assert content[1]["document"]["format"] == "pdf"
        assert "resume is attached" in content[0]["text"]

    def test_missing_resume_degrades(self, make_engine):
        """A resume that cannot be fetched adds a warning and analysis continues"""
        engine, stub = make_engine(analysis_response(assessment("j1")))
        result = engine.analyze_applicant(LAW_CLERK, [AB_CLERK])

        assert result.ok
        assert RESUME_UNAVAILABLE_WARNING in result.warnings
        assert len(stub.tool_calls[0]["content"]) == 1

    def test_prompt_lists_only_open_jobs(self, make_engine):
        """Closed job orders are not offered to the model"""
        engine, stub = make_engine(analysis_response(assessment("j1")))
        engine.analyze_applicant(LAW_CLERK, [AB_CLERK, CLOSED_JOB])

        prompt = stub.tool_calls[0]["content"][0]["text"]
        assert "ID: j1" in prompt
        assert "ID: j4" not in prompt

    def test_model_failure(self, make_engine):
        """Unreadable output is returned as a failure"""
        engine, _ = make_engine({"pros": ["Good"]})
        result = engine.analyze_applicant(LAW_CLERK, [AB_CLERK])

        assert not result.ok
        assert result.kind == FailureKind.UNREADABLE

    def test_empty_resume_degrades(self, make_engine):
        """A zero-byte resume is treated as unavailable and analysis continues"""
        storage = FakeResumeStorage({
            "resumes/maria.pdf": Attachment(data=b"", media_type="application/pdf", name="maria.pdf"),
        })
        engine, stub = make_engine(analysis_response(assessment("j1")), storage=storage)
        result = engine.analyze_applicant(LAW_CLERK, [AB_CLERK])

        assert result.ok
        assert RESUME_UNAVAILABLE_WARNING in result.warnings
        assert len(stub.tool_calls[0]["content"]) == 1
        assert "resume is attached" not in stub.tool_calls[0]["content"][0]["text"]

    def test_incomplete_assessment_skipped(self, make_engine):
        """An assessment missing roleMatch is dropped, the rest of the analysis stands"""
        incomplete = assessment("j3", score=95)
        del incomplete["roleMatch"]
        engine, _ = make_engine(analysis_response(assessment("j1", score=80), incomplete))
        result = engine.analyze_applicant(LAW_CLERK, [AB_CLERK, LITIGATION_CLERK])

        assert result.ok
        assert [m.job_id for m in result.value.job_matches] == ["j1"]
        assert INCOMPLETE_ASSESSMENTS_WARNING in result.warnings


class TestThresholdFloor:
    """Configured thresholds can only raise the minimum score"""

    def test_lower_threshold_ignored(self, monkeypatch, config, no_sleep_policy):
        monkeypatch.setattr(config, "match_score_threshold", 50)
        stub = StubBedrockClient(responses=[analysis_response(assessment("j1", score=55))])
        engine = MatchingEngine(config=config, storage=FakeResumeStorage(),
                                extractor=StructuredExtractor(stub, no_sleep_policy))

        result = engine.analyze_applicant(LAW_CLERK, [AB_CLERK])

        assert result.ok
        assert result.value.job_matches == []

    def test_configured_50_clamped(self, monkeypatch, config):
        monkeypatch.setenv("MATCH_SCORE_THRESHOLD", "50")
        engine = MatchingEngine(config=type(config)(), storage=FakeResumeStorage(), extractor=object())
        assert engine.config.match_score_threshold == 65
        assert engine.select_matches(
            [RequisitionAssessment.model_validate(assessment("j1", score=55))], [AB_CLERK]) == []

    def test_stricter_threshold_applies(self, monkeypatch, config):
        monkeypatch.setattr(config, "match_score_threshold", 80)
        engine = MatchingEngine(config=config, storage=FakeResumeStorage(), extractor=object())
        matches = engine.select_matches(
            [RequisitionAssessment.model_validate(assessment("j1", score=75)),
             RequisitionAssessment.model_validate(assessment("j3", score=85))],
            [AB_CLERK, LITIGATION_CLERK],
        )
        assert [m.job_id for m in matches] == ["j3"]
