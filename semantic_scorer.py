from typing import Optional

from sentence_transformers import SentenceTransformer
from sklearn.metrics.pairwise import cosine_similarity

from config import EMBED_MODEL


# Semantic scorer for free-text profile fields
class SemanticScorer:
    def __init__(self, mode: str = "off", model_name: str = EMBED_MODEL):
        if mode not in ("off", "embed"):
            raise ValueError(f"Unknown semantic mode: {mode!r} (expected 'off' or 'embed')")
        self.mode = mode
        self.model_name = model_name
        self._embedder = None
        if self.mode == "embed":
            try:
                self._embedder = SentenceTransformer(self.model_name)
            except Exception as e:
                raise RuntimeError(f"Could not load embedding model {self.model_name!r}: {e}") from e

    @staticmethod
    def _norm(s: Optional[str]) -> str:
        return "" if s is None else str(s).strip()

    def similarity(self, a: Optional[str], b: Optional[str]) -> float:
        """Cosine similarity of the two texts mapped from [-1, 1] to [0, 1]."""
        if self.mode != "embed":
            return 0.0
        a = self._norm(a)
        b = self._norm(b)
        if not a or not b:
            return 0.0
        embs = self._embedder.encode([a, b], show_progress_bar=False, normalize_embeddings=True)
        sim = float(cosine_similarity([embs[0]], [embs[1]])[0][0])  # [-1,1]
        return max(0.0, min(1.0, (sim + 1.0) / 2.0))

    def bio_similarity(self, mentee, mentor) -> float:
        return self.similarity(mentee.bio, mentor.bio)
