"""
Years-of-experience estimation from resume content
"""

import re
from datetime import date
from typing import Iterable, List, Optional, Tuple

from models.candidate import EmploymentPeriod

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
CURRENT_MARKERS = ("present", "current", "now", "today", "ongoing", "to date")

# "10 years of experience", "over 7.5 yrs of professional experience", "12+ years experience"
STATED_YEARS_PATTERN = re.compile(
    r"(\d{1,2}(?:\.\d)?)\s*\+?\s*(?:years?|yrs?)\.?\s+(?:of\s+)?"
    r"(?:(?:professional|relevant|total|work|working|industry|combined|progressive)\s+)*experience",
    re.IGNORECASE,
)


class ExperienceCalculator:
    """Estimate total professional experience in years"""

    @staticmethod
    def find_stated_years(text: Optional[str]) -> Optional[float]:
        """
        Find an explicit "X years of experience" statement

        Args:
            text: Document text

        Returns:
            The stated number of years, or None
        """
        if not text:
            return None
        match = STATED_YEARS_PATTERN.search(text)
        return float(match.group(1)) if match else None

    @staticmethod
    def parse_month(value: Optional[str], today: date) -> Optional[int]:
        """
        Parse a resume date into a month index (year * 12 + month - 1)

        Accepts YYYY-MM, YYYY/MM, MM/YYYY, "Jan 2020", "January 2020", YYYY and
        current-role markers such as "Present". A bare year counts from January.

        Args:
            value: Date text
            today: Date used for current roles

        Returns:
            Month index, or None if the value cannot be read
        """
        if not value:
            return None
        text = value.strip().lower()
        if any(marker in text for marker in CURRENT_MARKERS):
            return today.year * 12 + today.month - 1

        match = re.fullmatch(r"(\d{4})[-/.](\d{1,2})(?:[-/.]\d{1,2})?", text)
        if match:
            year, month = int(match.group(1)), int(match.group(2))
        else:
            match = re.fullmatch(r"(\d{1,2})[-/.](\d{4})", text)
            if match:
                month, year = int(match.group(1)), int(match.group(2))
            else:
                match = re.fullmatch(r"([a-z]{3})[a-z]*\.?,?\s+'?(\d{4})", text)
                if match and match.group(1) in MONTHS:
                    month, year = MONTHS[match.group(1)], int(match.group(2))
                else:
                    match = re.search(r"\b(\d{4})\b", text)
                    if not match:
                        return None
                    month, year = 1, int(match.group(1))

        if not 1 <= month <= 12 or not 1950 <= year <= today.year + 1:
            return None
        return year * 12 + month - 1

    @staticmethod
    def merge_intervals(intervals: Iterable[Tuple[int, int]]) -> List[Tuple[int, int]]:
        """Merge overlapping or touching [start, end) month intervals"""
        merged: List[Tuple[int, int]] = []
        for start, end in sorted(intervals):
            if merged and start <= merged[-1][1]:
                merged[-1] = (merged[-1][0], max(merged[-1][1], end))
            else:
                merged.append((start, end))
        return merged

    @staticmethod
    def years_from_periods(periods: Iterable[EmploymentPeriod], today: Optional[date] = None) -> Optional[float]:
        """
        Total experience from employment periods, counting overlapping time once

        Args:
            periods: Employment periods
            today: Evaluation date for open-ended roles (defaults to today)

        Returns:
            Years rounded to one decimal, or None if no period has a readable start
        """
        today = today or date.today()
        intervals = []
        for period in periods:
            start = ExperienceCalculator.parse_month(period.start, today)
            if start is None:
                continue
            end = ExperienceCalculator.parse_month(period.end or "present", today)
            if end is None or end < start:
                continue
            intervals.append((start, end))

        if not intervals:
            return None

        months = sum(end - start for start, end in ExperienceCalculator.merge_intervals(intervals))
        return round(months / 12.0, 1)

    @staticmethod
    def estimate_total_years(document_text: Optional[str], stated_years: Optional[float],
                             periods: List[EmploymentPeriod], model_estimate: Optional[float],
                             today: Optional[date] = None) -> Tuple[Optional[float], str]:
        """
        Apply the experience policy: explicit statement, then work history, then the model's estimate

        Returns:
            (years, source) where source is "stated", "history", "model" or "none"
        """
        explicit = ExperienceCalculator.find_stated_years(document_text)
        if explicit is None:
            explicit = stated_years
        if explicit is not None:
            return explicit, "stated"

        from_history = ExperienceCalculator.years_from_periods(periods, today)
        if from_history is not None:
            return from_history, "history"

        if model_estimate is not None:
            return model_estimate, "model"
        return None, "none"
