"""
Skill normalization utilities - case-insensitive de-duplication of skill lists
"""

from typing import Iterable, List, Optional
import re


class SkillNormalizer:
    """Normalize and de-duplicate skill names"""

    @staticmethod
    def normalize_skill(skill: str) -> str:
        """
        Normalize a skill name to its comparison key

        Args:
            skill: Raw skill name

        Returns:
            Lower-cased skill name with collapsed whitespace
        """
        if not skill:
            return ""
        return re.sub(r'\s+', ' ', skill).strip().lower()

    @staticmethod
    def clean_skill(skill: str) -> str:
        """Tidy a skill for display, keeping its original casing"""
        return re.sub(r'\s+', ' ', skill or "").strip().strip("•-*·").strip()

    @staticmethod
    def dedupe_skills(skills: Iterable[str], limit: Optional[int] = None) -> List[str]:
        """
        Remove case-insensitive duplicates, keeping the first (most relevant) spelling

        Args:
            skills: Skills in relevance order
            limit: Maximum number of skills to keep

        Returns:
            De-duplicated skills in their original order
        """
        seen = set()
        result = []
        for skill in skills:
            cleaned = SkillNormalizer.clean_skill(skill)
            key = SkillNormalizer.normalize_skill(cleaned)
            if not key or key in seen:
                continue
            seen.add(key)
            result.append(cleaned)
            if limit is not None and len(result) >= limit:
                break
        return result
