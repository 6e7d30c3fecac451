"""
Attribute sub-scorers.

Each function compares one mentee preference with the matching mentor
attribute and returns a value in [0, 1]. Missing or blank values on either
side score 0. These carry no weight by default; see ``config.PREFERENCE_WEIGHTS``.
"""

import re
from typing import List, Optional

FILLER_WORDS = {"and", "or", "the", "a", "an", "of", "in", "with", "for", "to", "by"}

# word fragment -> related industry terms
INDUSTRY_EXPANSIONS = {
    "account": ["accounting", "audit"],
    "financ": ["finance", "banking", "investment"],
    "tech": ["technology", "software", "it"],
    "consult": ["consulting", "advisory"],
    "startup": ["startup", "entrepreneur"],
    "health": ["healthcare", "medical"],
    "educat": ["education", "academic"],
}

ROLE_VARIATIONS = {
    "swe": ["software engineer", "full stack developer", "developer", "programmer"],
    "full stack developer": ["swe", "software engineer", "developer", "programmer"],
    "software engineer": ["swe", "full stack developer", "developer", "programmer"],
    "internal auditor": ["auditor", "senior internal auditor", "assurance associate"],
    "auditor": ["internal auditor", "external auditor", "senior auditor", "assurance associate"],
    "accountant": ["graduate accountant", "senior accountant", "financial accountant"],
    "finance": ["financial analyst", "finance manager", "financial advisor"],
}

ROLE_KEYWORDS = ["auditor", "accountant", "finance", "internal", "senior"]
PREVIOUS_ROLE_KEYWORDS = ["auditor", "accountant", "finance", "big 4"]
CULTURE_KEYWORDS = ["chinese", "english", "international"]
AVAILABILITY_KEYWORDS = ["weekly", "weekday", "after hours", "during the week"]

SENIORITY_LEVELS = {
    "junior": 1,
    "mid-level": 2,
    "senior": 3,
    "manager": 4,
    "director": 5,
    "executive": 6,
}


def _norm(value) -> str:
    return "" if value is None else str(value).strip().lower()


def _contains_either(a: str, b: str) -> bool:
    return a == b or a in b or b in a


def _shared_keyword(a: str, b: str, keywords: List[str]) -> bool:
    return any(k in a and k in b for k in keywords)


def _keyword_match(mentee_value, mentor_value, keywords: List[str]) -> float:
    mentee = _norm(mentee_value)
    mentor = _norm(mentor_value)
    if not mentee or not mentor:
        return 0.0
    if _contains_either(mentee, mentor):
        return 1.0
    return 1.0 if _shared_keyword(mentee, mentor, keywords) else 0.0


def extract_industry_keywords(industry: str) -> List[str]:
    cleaned = re.sub(r"\s+", " ", re.sub(r"[,;()]", " ", industry)).strip()
    words = [
        w for w in cleaned.split(" ")
        if len(w) > 2 and w not in FILLER_WORDS and not w.isdigit()
    ]
    keywords = []
    for word in words:
        keywords.append(word)
        for fragment, related in INDUSTRY_EXPANSIONS.items():
            if fragment in word:
                keywords.extend(related)
    # dedupe, keep order
    return list(dict.fromkeys(keywords))


def industry_match(mentee_industry, mentor_industry) -> float:
    """
    Exact or substring match scores 1. Otherwise the share of the mentee's
    industry keywords (with related-term expansion) that partially match a
    mentor keyword.
    """
    mentee = _norm(mentee_industry)
    mentor = _norm(mentor_industry)
    if not mentee or not mentor:
        return 0.0
    if _contains_either(mentee, mentor):
        return 1.0

    mentee_keywords = extract_industry_keywords(mentee)
    mentor_keywords = extract_industry_keywords(mentor)
    if not mentee_keywords:
        return 0.0
    overlapping = [
        k for k in mentee_keywords
        if any(k in mk or mk in k for mk in mentor_keywords)
    ]
    return min(len(overlapping) / len(mentee_keywords), 1.0)


def role_match(mentee_role, mentor_role) -> float:
    mentee = _norm(mentee_role)
    mentor = _norm(mentor_role)
    if not mentee or not mentor:
        return 0.0
    if _contains_either(mentee, mentor):
        return 1.0

    for key, variations in ROLE_VARIATIONS.items():
        family = [key] + variations
        if any(v in mentee for v in family) and any(v in mentor for v in family):
            return 1.0

    return 1.0 if _shared_keyword(mentee, mentor, ROLE_KEYWORDS) else 0.0


def seniority_match(mentee_seniority, mentor_seniority) -> float:
    """Mentor at or above the requested level scores 1, one level below 0.6."""
    if not _norm(mentee_seniority) or not _norm(mentor_seniority):
        return 0.0
    mentee_level = SENIORITY_LEVELS.get(_norm(mentee_seniority), 1)
    mentor_level = SENIORITY_LEVELS.get(_norm(mentor_seniority), 1)
    if mentor_level >= mentee_level:
        return 1.0
    if mentor_level == mentee_level - 1:
        return 0.6
    return 0.0


def previous_roles_match(mentee_roles, mentor_roles) -> float:
    return _keyword_match(mentee_roles, mentor_roles, PREVIOUS_ROLE_KEYWORDS)


def experience_match(mentee_years: Optional[int], mentor_years: Optional[int]) -> float:
    """Mentor with at least the requested years scores 1, one short 0.7, else 0.1."""
    if not mentee_years or not mentor_years:
        return 0.0
    if mentor_years >= mentee_years:
        return 1.0
    if mentor_years == mentee_years - 1:
        return 0.7
    return 0.1


def cultural_match(mentee_culture, mentor_culture) -> float:
    return _keyword_match(mentee_culture, mentor_culture, CULTURE_KEYWORDS)


def availability_match(mentee_availability, mentor_availability) -> float:
    return _keyword_match(mentee_availability, mentor_availability, AVAILABILITY_KEYWORDS)


def split_labels(value) -> set:
    if value is None:
        return set()
    return {s.strip().lower() for s in re.split(r"[,;]", str(value)) if s.strip()}


def mentoring_style_match(mentee_styles, mentor_styles) -> float:
    """Share of the mentee's requested styles that the mentor offers."""
    wanted = split_labels(mentee_styles)
    offered = split_labels(mentor_styles)
    if not wanted or not offered:
        return 0.0
    return min(len(wanted & offered) / len(wanted), 1.0)
