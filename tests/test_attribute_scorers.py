"""
Tests for the attribute sub-scorers.
"""

import pytest

from attribute_scorers import (
    availability_match,
    cultural_match,
    experience_match,
    extract_industry_keywords,
    industry_match,
    mentoring_style_match,
    previous_roles_match,
    role_match,
    seniority_match,
)


class TestMissingValues:
    """Every sub-scorer scores 0 when a side is missing."""

    @pytest.mark.parametrize("fn", [
        industry_match, role_match, seniority_match, previous_roles_match,
        cultural_match, availability_match, mentoring_style_match,
    ])
    @pytest.mark.parametrize("a, b", [(None, "x"), ("x", None), ("", "x"), ("  ", "x")])
    def test_text_scorers(self, fn, a, b):
        assert fn(a, b) == 0.0

    @pytest.mark.parametrize("a, b", [(None, 5), (5, None), (0, 5), (5, 0)])
    def test_experience(self, a, b):
        assert experience_match(a, b) == 0.0


class TestIndustryMatch:

    def test_exact_and_substring(self):
        assert industry_match("Finance", "finance") == 1.0
        assert industry_match("Banking", "Investment Banking") == 1.0

    def test_keyword_expansion(self):
        """'financial services' expands to finance/banking, which a banking mentor matches."""
        assert industry_match("Financial Services", "Retail Banking") > 0.0

    def test_unrelated(self):
        assert industry_match("Healthcare", "Mining") == 0.0

    def test_keywords_drop_fillers_and_numbers(self):
        keywords = extract_industry_keywords("art and design of 2024")
        assert "and" not in keywords
        assert "of" not in keywords
        assert "2024" not in keywords
        assert "art" in keywords
        assert "design" in keywords


class TestRoleMatch:

    def test_role_family(self):
        assert role_match("SWE", "Full Stack Developer") == 1.0

    def test_shared_keyword(self):
        assert role_match("Senior Analyst", "Senior Designer") == 1.0

    def test_different_roles(self):
        assert role_match("Nurse", "Architect") == 0.0


class TestSeniorityMatch:

    @pytest.mark.parametrize("mentee, mentor, expected", [
        ("Senior", "Director", 1.0),
        ("Senior", "Senior", 1.0),
        ("Senior", "Mid-level", 0.6),
        ("Director", "Mid-level", 0.0),
        ("Unknown", "Junior", 1.0),
    ])
    def test_levels(self, mentee, mentor, expected):
        assert seniority_match(mentee, mentor) == expected


class TestExperienceMatch:

    @pytest.mark.parametrize("mentee, mentor, expected", [
        (5, 8, 1.0),
        (5, 5, 1.0),
        (5, 4, 0.7),
        (5, 2, 0.1),
    ])
    def test_years(self, mentee, mentor, expected):
        assert experience_match(mentee, mentor) == expected


class TestKeywordScorers:

    def test_previous_roles(self):
        assert previous_roles_match("Big 4 tax", "Big 4 advisory") == 1.0
        assert previous_roles_match("Teacher", "Chef") == 0.0

    def test_cultural(self):
        assert cultural_match("International student", "international") == 1.0
        assert cultural_match("Spanish", "French") == 0.0

    def test_availability(self):
        assert availability_match("Weekday mornings", "weekday evenings") == 1.0
        assert availability_match("Weekends", "Mornings") == 0.0


class TestMentoringStyleMatch:

    def test_share_of_requested_styles(self):
        assert mentoring_style_match("Coaching, Sponsorship", "coaching; advisory") == 0.5

    def test_full_cover(self):
        assert mentoring_style_match("Coaching", "Coaching, Advisory") == 1.0
