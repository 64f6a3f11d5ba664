"""
Tests for years-of-experience estimation
"""
from datetime import date

import pytest

from models.candidate import EmploymentPeriod
from services.experience_calculator import ExperienceCalculator

TODAY = date(2025, 11, 1)


class TestParseMonth:
    """Date formats found in resumes"""

    @pytest.mark.parametrize("value,expected", [
        ("2020-01", 2020 * 12),
        ("2020/03", 2020 * 12 + 2),
        ("06/2018", 2018 * 12 + 5),
        ("Jan 2020", 2020 * 12),
        ("September 2019", 2019 * 12 + 8),
        ("Sept. 2019", 2019 * 12 + 8),
        ("2019", 2019 * 12),
    ])
    def test_formats(self, value, expected):
        """Each supported format maps to the right month"""
        assert ExperienceCalculator.parse_month(value, TODAY) == expected

    @pytest.mark.parametrize("value", ["Present", "current", "Now"])
    def test_current_markers_use_evaluation_date(self, value):
        """Open-ended roles run to the evaluation date"""
        assert ExperienceCalculator.parse_month(value, TODAY) == 2025 * 12 + 10

    @pytest.mark.parametrize("value", [None, "", "sometime", "13/2020", "1820"])
    def test_unreadable(self, value):
        """Unreadable dates return None"""
        assert ExperienceCalculator.parse_month(value, TODAY) is None


class TestYearsFromPeriods:
    """Totals from employment history"""

    def test_sequential_periods(self):
        """Jan 2020 - Present plus Jun 2018 - Dec 2019 totals 7.3 years"""
        periods = [
            EmploymentPeriod(title="Software Engineer", start="Jan 2020", end="Present"),
            EmploymentPeriod(title="Junior Developer", start="Jun 2018", end="Dec 2019"),
        ]
        assert ExperienceCalculator.years_from_periods(periods, TODAY) == 7.3

    def test_single_periods(self):
        """The components of the example total round as expected"""
        assert ExperienceCalculator.years_from_periods(
            [EmploymentPeriod(start="2020-01", end="Present")], TODAY) == 5.8
        assert ExperienceCalculator.years_from_periods(
            [EmploymentPeriod(start="2018-06", end="2019-12")], TODAY) == 1.5

    def test_overlapping_periods_count_once(self):
        """Concurrent roles are a union, not a sum"""
        periods = [
            EmploymentPeriod(start="2015-01", end="2020-01"),
            EmploymentPeriod(start="2018-01", end="2022-01"),
        ]
        assert ExperienceCalculator.years_from_periods(periods, TODAY) == 7.0

    def test_nested_period(self):
        """A role entirely inside another adds nothing"""
        periods = [
            EmploymentPeriod(start="2010-01", end="2020-01"),
            EmploymentPeriod(start="2012-01", end="2013-01"),
        ]
        assert ExperienceCalculator.years_from_periods(periods, TODAY) == 10.0

    def test_year_only_periods(self):
        """Year-only dates subtract years"""
        periods = [
            EmploymentPeriod(start="2019", end="2022"),
            EmploymentPeriod(start="2018", end="2019"),
        ]
        assert ExperienceCalculator.years_from_periods(periods, TODAY) == 4.0

    def test_missing_end_means_current(self):
        """A period without an end date is current"""
        assert ExperienceCalculator.years_from_periods(
            [EmploymentPeriod(start="2024-11")], TODAY) == 1.0

    def test_no_readable_periods(self):
        """No usable dates gives None"""
        assert ExperienceCalculator.years_from_periods([EmploymentPeriod(title="Clerk")], TODAY) is None
        assert ExperienceCalculator.years_from_periods([], TODAY) is None

    def test_reversed_period_ignored(self):
        """An end before the start is discarded"""
        periods = [
            EmploymentPeriod(start="2022-01", end="2020-01"),
            EmploymentPeriod(start="2020-01", end="2021-01"),
        ]
        assert ExperienceCalculator.years_from_periods(periods, TODAY) == 1.0


class TestEstimateTotalYears:
    """Priority between the experience sources"""

    HISTORY = [EmploymentPeriod(start="2022-01", end="2024-01")]

    def test_explicit_statement_in_text_wins(self):
        """A stated '10 years of experience' overrides the dates"""
        years, source = ExperienceCalculator.estimate_total_years(
            "Software engineer with 10 years of experience", None, self.HISTORY, 3.0, TODAY)
        assert (years, source) == (10.0, "stated")

    def test_model_stated_years_used_without_text(self):
        """The model's stated years count when the text is not available"""
        years, source = ExperienceCalculator.estimate_total_years(None, 12.0, self.HISTORY, 3.0, TODAY)
        assert (years, source) == (12.0, "stated")

    def test_history_used_without_statement(self):
        """Work history is next"""
        years, source = ExperienceCalculator.estimate_total_years("No statement here", None, self.HISTORY, 9.0, TODAY)
        assert (years, source) == (2.0, "history")

    def test_model_estimate_last(self):
        """The model's own total is the fallback"""
        years, source = ExperienceCalculator.estimate_total_years(None, None, [], 4.5, TODAY)
        assert (years, source) == (4.5, "model")

    def test_nothing_available(self):
        """No work history gives None"""
        assert ExperienceCalculator.estimate_total_years(None, None, [], None, TODAY) == (None, "none")

    @pytest.mark.parametrize("text,expected", [
        ("Over 7.5 yrs of professional experience in litigation", 7.5),
        ("12+ years experience as a law clerk", 12.0),
        ("I have 3 years of relevant experience.", 3.0),
        ("Worked 5 years at ACME", None),
    ])
    def test_find_stated_years(self, text, expected):
        """Statement variants"""
        assert ExperienceCalculator.find_stated_years(text) == expected
