"""
Tests for the optional bio similarity scorer.
"""

import pytest

import semantic_scorer
from match_scorer import Profile
from semantic_scorer import SemanticScorer


class FakeEmbedder:
    """Maps known texts to fixed unit vectors."""

    VECTORS = {
        "audit": [1.0, 0.0],
        "assurance": [1.0, 0.0],
        "cooking": [0.0, 1.0],
        "anti-audit": [-1.0, 0.0],
    }

    def __init__(self, model_name):
        self.model_name = model_name

    def encode(self, texts, show_progress_bar=False, normalize_embeddings=True):
        return [self.VECTORS[t] for t in texts]


@pytest.fixture
def embed_scorer(monkeypatch):
    monkeypatch.setattr(semantic_scorer, "SentenceTransformer", FakeEmbedder)
    return SemanticScorer(mode="embed", model_name="fake-model")


class TestSemanticScorer:

    def test_off_mode_scores_zero(self):
        scorer = SemanticScorer()
        assert scorer.similarity("audit", "audit") == 0.0

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            SemanticScorer(mode="tfidf")

    def test_model_load_failure(self, monkeypatch):
        def broken(model_name):
            raise OSError("no network")

        monkeypatch.setattr(semantic_scorer, "SentenceTransformer", broken)
        with pytest.raises(RuntimeError, match="fake-model"):
            SemanticScorer(mode="embed", model_name="fake-model")

    @pytest.mark.parametrize("a, b, expected", [
        ("audit", "assurance", 1.0),
        ("audit", "cooking", 0.5),
        ("audit", "anti-audit", 0.0),
    ])
    def test_similarity_mapped_to_unit_interval(self, embed_scorer, a, b, expected):
        assert embed_scorer.similarity(a, b) == pytest.approx(expected)

    @pytest.mark.parametrize("a, b", [(None, "audit"), ("audit", "  "), ("", "")])
    def test_blank_text_scores_zero(self, embed_scorer, a, b):
        assert embed_scorer.similarity(a, b) == 0.0

    def test_bio_similarity(self, embed_scorer):
        mentee = Profile(id="a", bio="audit")
        mentor = Profile(id="b", bio=" assurance ")
        assert embed_scorer.bio_similarity(mentee, mentor) == pytest.approx(1.0)
