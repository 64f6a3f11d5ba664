"""
Tests for record model coercions
"""
import pytest
from pydantic import ValidationError

from models.analysis import AnalysisExtraction, RequisitionAssessment
from models.candidate import Applicant, CandidateProfile, ResumeExtraction
from models.job_order import JobOrder


class TestCandidateProfile:
    """CandidateProfile field cleanup"""

    def test_null_like_answers_become_none(self):
        profile = CandidateProfile.model_validate({"fullName": "  N/A ", "location": "null", "phone": ""})
        assert profile.full_name is None
        assert profile.location is None
        assert profile.phone is None

    def test_invalid_email_dropped(self):
        assert CandidateProfile(email="not-an-email").email is None

    def test_years_read_from_text(self):
        assert CandidateProfile.model_validate({"totalYOE": "about 12 years"}).total_yoe == 12.0
        assert CandidateProfile.model_validate({"totalYOE": -3}).total_yoe == 0.0

    def test_secondary_skills_from_string(self):
        profile = CandidateProfile(secondary_skills="Tort claims, PCLaw")
        assert profile.secondary_skills == ["Tort claims", "PCLaw"]


class TestApplicant:
    """Applicant records"""

    def test_zero_rating_is_unrated(self):
        assert Applicant(rating=0).rating is None

    def test_rating_out_of_range(self):
        with pytest.raises(ValidationError):
            Applicant(rating=11)

    def test_document_excludes_id(self):
        document = Applicant(id="a1", full_name="Sam Lee").to_document()
        assert "id" not in document
        assert document["fullName"] == "Sam Lee"
        assert document["status"] == "New"

    def test_from_profile(self):
        applicant = Applicant.from_profile(CandidateProfile(full_name="Sam Lee"), source="Referral")
        assert applicant.full_name == "Sam Lee"
        assert applicant.source == "Referral"


class TestResumeExtraction:
    """ResumeExtraction"""

    def test_non_dict_history_entries_skipped(self):
        extraction = ResumeExtraction.model_validate({
            "employmentHistory": [{"title": "Clerk", "start": "2020-01"}, "junk", None],
        })
        assert len(extraction.employment_history) == 1

    def test_to_profile_override(self):
        extraction = ResumeExtraction(full_name="Sam Lee", total_yoe=2, stated_years_of_experience=5)
        assert extraction.to_profile(total_yoe=5.0).total_yoe == 5.0


class TestAnalysisShapes:
    """Analysis extraction shapes"""

    def test_rating_clamped(self):
        extraction = AnalysisExtraction(overall_rating="12", summary="Strong.")
        assert extraction.overall_rating == 10.0

    def test_missing_summary_rejected(self):
        with pytest.raises(ValidationError):
            AnalysisExtraction(overall_rating=5, summary="  ")

    def test_deficit_labels_stripped(self):
        extraction = AnalysisExtraction(overall_rating=5, summary="Ok.",
                                        potential_discussion_points=["Weakness: limited tort exposure"])
        assert extraction.potential_discussion_points == ["limited tort exposure"]

    def test_sub_scores_clamped(self):
        assessment = RequisitionAssessment(job_id=42, role_match=True, experience_fit="140", skill_overlap=None)
        assert assessment.job_id == "42"
        assert assessment.experience_fit == 100.0
        assert assessment.skill_overlap == 0.0


class TestJobOrder:
    """JobOrder"""

    @pytest.mark.parametrize("status,expected", [
        ("Open", True), ("Interviewing", True), ("On Hold", False), ("Placed", False), ("Canceled", False),
    ])
    def test_open_for_matching(self, status, expected):
        assert JobOrder(job_title="Clerk", status=status).is_open_for_matching is expected


class TestAssessmentFiltering:
    """Invalid requisition assessments are dropped one by one"""

    def test_entry_missing_role_match_dropped(self):
        extraction = AnalysisExtraction.model_validate({
            "overallRating": 7,
            "summary": "Solid.",
            "requisitionAssessments": [
                {"jobId": "j1", "roleMatch": True, "experienceFit": 80},
                {"jobId": "j2", "experienceFit": 90},
                "not an assessment",
            ],
        })
        assert [a.job_id for a in extraction.requisition_assessments] == ["j1"]
        assert extraction.skipped_assessments == 2

    def test_missing_list_is_empty(self):
        extraction = AnalysisExtraction.model_validate({"overallRating": 7, "summary": "Solid.",
                                                        "requisitionAssessments": None})
        assert extraction.requisition_assessments == []
        assert extraction.skipped_assessments == 0

    def test_skipped_count_not_in_tool_schema(self):
        schema = AnalysisExtraction.model_json_schema(by_alias=True)
        assert "skippedAssessments" not in schema["properties"]
