"""
Mentor/mentee match scoring.

A mentee is scored against each candidate mentor with a set of weighted
sub-scores. Each sub-score is a value in [0, 1]; its contribution to the
100-point total is ``value * weight``. Only the tag-overlap term (weight 30)
is enabled by default; the attribute terms in ``attribute_scorers`` and the
optional ``bio_semantic`` term are opt-in through ``weights``.

Usage:
    scorer = MatchScorer()                       # tag overlap only
    scorer = MatchScorer(config.PREFERENCE_WEIGHTS)  # product preference formula
    results = scorer.rank(mentee, mentors)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from attribute_scorers import (
    availability_match,
    cultural_match,
    experience_match,
    industry_match,
    mentoring_style_match,
    previous_roles_match,
    role_match,
    seniority_match,
)
from config import DEFAULT_WEIGHTS, MAX_SCORE

log = logging.getLogger(__name__)

SubScorer = Callable[["Profile", "Profile"], float]


def tag_set(tags: Optional[Iterable[str]]) -> FrozenSet[str]:
    """Coerce a tag collection into a TagSet. ``None`` and blanks drop out."""
    if tags is None:
        return frozenset()
    if isinstance(tags, str):
        tags = [tags]
    try:
        tags = list(tags)
    except TypeError:
        # a malformed cell (number, NaN) carries no tags
        return frozenset()
    return frozenset(str(t).strip() for t in tags if t is not None and str(t).strip())


def _tag_keys(tags: Optional[Iterable[str]]) -> FrozenSet[str]:
    return frozenset(t.casefold() for t in tag_set(tags))


@dataclass(frozen=True)
class Profile:
    id: str
    tags: FrozenSet[str] = field(default_factory=frozenset)
    name: Optional[str] = None
    industry: Optional[str] = None
    current_role: Optional[str] = None
    seniority: Optional[str] = None
    previous_roles: Optional[str] = None
    years_experience: Optional[int] = None
    mentoring_style: Optional[str] = None
    cultural_background: Optional[str] = None
    availability: Optional[str] = None
    bio: Optional[str] = None
    updated_at: Optional[pd.Timestamp] = None
    last_paired: Optional[pd.Timestamp] = None

    def __post_init__(self):
        object.__setattr__(self, "tags", tag_set(self.tags))


@dataclass(frozen=True)
class ScoreComponent:
    value: float
    weight: float

    @property
    def contribution(self) -> float:
        return self.value * self.weight


# sub-score name -> component, in scoring order
ScoreBreakdown = Dict[str, ScoreComponent]


@dataclass(frozen=True)
class MatchResult:
    mentor_id: str
    total: float
    breakdown: ScoreBreakdown = field(default_factory=dict)

    def contributions(self) -> Dict[str, float]:
        return {name: round(c.contribution, 4) for name, c in self.breakdown.items()}


def tag_overlap(mentee_tags: Optional[Iterable[str]], mentor_tags: Optional[Iterable[str]]) -> float:
    """
    Share of the mentee's unique tags that the mentor also carries.

    The denominator is always the mentee's tag count. Either side empty
    gives 0; the ratio never exceeds 1.
    """
    mentee = _tag_keys(mentee_tags)
    mentor = _tag_keys(mentor_tags)
    if not mentee or not mentor:
        return 0.0
    return min(len(mentee & mentor) / len(mentee), 1.0)


def tag_blend(mentee_tags: Optional[Iterable[str]], mentor_tags: Optional[Iterable[str]]) -> float:
    """
    ``0.7 * coverage + 0.3 * jaccard`` over case-folded tags, in [0, 1].

    Coverage is the share of mentee tags the mentor carries; jaccard
    normalizes by the size of both sets. No shared tag gives 0.
    """
    mentee = _tag_keys(mentee_tags)
    mentor = _tag_keys(mentor_tags)
    overlap = len(mentee & mentor)
    if not overlap:
        return 0.0
    coverage = overlap / len(mentee)
    jaccard = overlap / len(mentee | mentor)
    return 0.7 * coverage + 0.3 * jaccard


def shared_tags(mentee: Profile, mentor: Profile) -> List[str]:
    mentor_keys = _tag_keys(mentor.tags)
    return sorted(t for t in mentee.tags if t.casefold() in mentor_keys)


SUB_SCORERS: Dict[str, SubScorer] = {
    "tag_overlap": lambda me, mr: tag_overlap(me.tags, mr.tags),
    "tag_blend": lambda me, mr: tag_blend(me.tags, mr.tags),
    "industry": lambda me, mr: industry_match(me.industry, mr.industry),
    "role": lambda me, mr: role_match(me.current_role, mr.current_role),
    "seniority": lambda me, mr: seniority_match(me.seniority, mr.seniority),
    "previous_roles": lambda me, mr: previous_roles_match(me.previous_roles, mr.previous_roles),
    "experience": lambda me, mr: experience_match(me.years_experience, mr.years_experience),
    "cultural": lambda me, mr: cultural_match(me.cultural_background, mr.cultural_background),
    "availability": lambda me, mr: availability_match(me.availability, mr.availability),
    "mentoring_style": lambda me, mr: mentoring_style_match(me.mentoring_style, mr.mentoring_style),
}


class MatchScorer:
    """
    Weighted combination of pluggable sub-scorers.

    Args:
        weights: sub-score name -> weight in percentage points. Defaults to
            ``DEFAULT_WEIGHTS`` (tag overlap at 30).
        scorers: extra or replacement sub-scorers, keyed by name.
        semantic: a ``SemanticScorer``; registers the ``bio_semantic`` term.

    Raises:
        ValueError: on a negative weight or a weight with no sub-scorer.
    """

    def __init__(
        self,
        weights: Optional[Dict[str, float]] = None,
        scorers: Optional[Dict[str, SubScorer]] = None,
        semantic=None,
    ):
        self.scorers: Dict[str, SubScorer] = dict(SUB_SCORERS)
        if semantic is not None:
            self.scorers["bio_semantic"] = semantic.bio_similarity
        if scorers:
            self.scorers.update(scorers)

        self.weights: Dict[str, float] = dict(DEFAULT_WEIGHTS if weights is None else weights)
        for name, weight in self.weights.items():
            if name not in self.scorers:
                raise ValueError(f"No sub-scorer registered for weight {name!r}")
            if weight < 0:
                raise ValueError(f"Weight for {name!r} must be non-negative, got {weight}")
        total_weight = sum(self.weights.values())
        if total_weight > MAX_SCORE:
            log.warning("Weights sum to %s (> %s); totals will be capped", total_weight, MAX_SCORE)

    def _sub_score(self, name: str, mentee: Profile, mentor: Profile) -> float:
        try:
            value = float(self.scorers[name](mentee, mentor))
        except Exception as e:
            log.warning("Sub-score %r failed for mentor %s: %s", name, mentor.id, e)
            return 0.0
        if math.isnan(value):
            return 0.0
        return min(max(value, 0.0), 1.0)

    def score(self, mentee: Profile, mentor: Profile) -> MatchResult:
        breakdown: ScoreBreakdown = {}
        for name, weight in self.weights.items():
            breakdown[name] = ScoreComponent(self._sub_score(name, mentee, mentor), weight)
        total = sum(c.contribution for c in breakdown.values())
        return MatchResult(mentor.id, round(min(total, MAX_SCORE), 4), breakdown)

    def rank_pairs(self, mentee: Profile, mentors: Sequence[Profile]) -> List[Tuple[Profile, MatchResult]]:
        """Like ``rank`` but keeps each result next to the mentor it scored."""
        pairs = [(mentor, self.score(mentee, mentor)) for mentor in mentors]
        # sorted() is stable with reverse=True
        return sorted(pairs, key=lambda p: p[1].total, reverse=True)

    def rank(self, mentee: Profile, mentors: Sequence[Profile]) -> List[MatchResult]:
        """Score every mentor and sort by total, highest first; ties keep input order."""
        return [result for _, result in self.rank_pairs(mentee, mentors)]


def score(mentee: Profile, mentor: Profile, weights: Optional[Dict[str, float]] = None) -> MatchResult:
    return MatchScorer(weights).score(mentee, mentor)


def rank(mentee: Profile, mentors: Sequence[Profile], weights: Optional[Dict[str, float]] = None) -> List[MatchResult]:
    return MatchScorer(weights).rank(mentee, mentors)

