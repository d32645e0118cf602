"""
Retriever

Ranks a document's Subsections against a question. Two strategies are
supported:

- "cosine": score every relational Subsection in-process with numpy.
- "vector": query the pgvector index in the owner's namespace, over-fetch,
  and keep only matches tagged with the target document. Any vector-store
  failure falls back to the cosine strategy.

For resume documents a "current role" question forces the most recently
indexed Experience entry to rank 1.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import numpy as np

from ..config import settings
from ..core.errors import VectorStoreError
from ..db.models import Document
from ..db.repository import DocumentRepository, StoredChunk
from ..db.vector_store import VectorStore, VectorMatch
from ..embeddings.embedder import Embedder
from ..processing.splitter import SectionKind, resolve_kind
from ..tenants import namespace_for

logger = logging.getLogger("documet.retriever")

STRATEGY_COSINE = "cosine"
STRATEGY_VECTOR = "vector"
STRATEGIES = (STRATEGY_COSINE, STRATEGY_VECTOR)

CURRENT_ROLE_PATTERN = re.compile(
    r"\b("
    r"current(ly)?\s+(role|job|position|title|responsibilit(y|ies)|employer|company|work)"
    r"|present\s+(role|job|position|employer)"
    r"|currently\s+work(ing)?"
    r"|where\s+(do|are)\s+you\s+(currently\s+)?work(ing)?"
    r"|what\s+do\s+you\s+do\s+now"
    r")\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ScoredChunk:
    """A retrieved Subsection and its similarity to the question."""

    chunk: StoredChunk
    score: float

    @property
    def section_name(self) -> str:
        return self.chunk.section_name

    @property
    def title(self) -> str:
        return self.chunk.title

    @property
    def content(self) -> str:
        return self.chunk.content


# ---------------------------------------------------------------------
# Scoring helpers
# ---------------------------------------------------------------------

def coerce_embedding(raw: Any) -> List[float]:
    """
    Best-effort conversion of a stored embedding to a float list.

    Lists are converted element-wise, dicts contribute their values in
    order. Anything unparseable becomes an empty vector.
    """
    if isinstance(raw, dict):
        raw = list(raw.values())

    if isinstance(raw, (list, tuple)):
        try:
            values = [float(x) for x in raw]
        except (TypeError, ValueError):
            logger.warning("Discarding malformed embedding with non-numeric values")
            return []
        if not all(math.isfinite(v) for v in values):
            logger.warning("Discarding malformed embedding with non-finite values")
            return []
        return values

    if raw is not None:
        logger.warning("Discarding malformed embedding of type %s", type(raw).__name__)
    return []


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    dot(a, b) / (||a|| * ||b||).

    Empty, zero-norm or mismatched vectors score 0.0.
    """
    if not a or not b or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0

    return float(np.dot(va, vb) / denom)


def is_current_role_question(question: str) -> bool:
    return bool(CURRENT_ROLE_PATTERN.search(question or ""))


def _rank(scored: List[ScoredChunk]) -> List[ScoredChunk]:
    # sorted() is stable, so equal scores keep their incoming order
    return sorted(scored, key=lambda s: s.score, reverse=True)


# ---------------------------------------------------------------------
# Retriever
# ---------------------------------------------------------------------

class Retriever:
    """
    Read-only question-to-chunk ranking over both stores.
    """

    def __init__(
        self,
        repository: DocumentRepository,
        vector_store: VectorStore,
        embedder: Embedder,
    ) -> None:
        self._repository = repository
        self._vector_store = vector_store
        self._embedder = embedder

    async def retrieve(
        self,
        document: Document,
        question: str,
        k: Optional[int] = None,
        strategy: str = STRATEGY_COSINE,
        boost_current_role: Optional[bool] = None,
    ) -> List[ScoredChunk]:
        """
        Return up to ``k`` chunks sorted by descending score.

        Parameters
        ----------
        document : Document
            Target document; its owner determines the vector namespace.
        question : str
            Free-text question, embedded once.
        k : Optional[int]
            Result count. Defaults to settings.retrieval_top_k.
        strategy : str
            "cosine" or "vector".
        boost_current_role : Optional[bool]
            Override for the current-role policy. By default it applies to
            resume documents when settings.current_role_boost is set.
        """
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown retrieval strategy: {strategy!r}")

        k = settings.retrieval_top_k if k is None else k
        if k <= 0:
            return []

        if boost_current_role is None:
            boost_current_role = settings.current_role_boost and document.kind == "resume"

        question_vector = await self._embedder.embed_one(question)

        stored: Optional[List[StoredChunk]] = None
        ranked: List[ScoredChunk] = []

        if strategy == STRATEGY_VECTOR:
            try:
                ranked = await self._vector_ranking(document, question_vector)
            except VectorStoreError as exc:
                logger.warning(
                    "Vector query failed for document %s, using relational scoring: %s",
                    document.id,
                    exc,
                )
                ranked = []
            if not ranked:
                stored = await self._repository.list_subsections(document.id)
                ranked = self._cosine_ranking(stored, question_vector)
        else:
            stored = await self._repository.list_subsections(document.id)
            ranked = self._cosine_ranking(stored, question_vector)

        if boost_current_role and is_current_role_question(question):
            if stored is None:
                stored = await self._repository.list_subsections(document.id)
            ranked = self._boost_current_role(ranked, stored, question_vector)

        return ranked[:k]

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    @staticmethod
    def _cosine_ranking(
        stored: List[StoredChunk], question_vector: List[float]
    ) -> List[ScoredChunk]:
        scored = [
            ScoredChunk(chunk, cosine_similarity(question_vector, coerce_embedding(chunk.embedding)))
            for chunk in stored
        ]
        return _rank(scored)

    async def _vector_ranking(
        self, document: Document, question_vector: List[float]
    ) -> List[ScoredChunk]:
        matches = await self._vector_store.query(
            namespace_for(document.user_id),
            question_vector,
            top_k=settings.vector_query_top_k,
            document_id=document.id,
        )

        target = str(document.id)
        scored = [
            ScoredChunk(self._chunk_from_match(match), match.score)
            for match in matches
            if str(match.metadata.get("document_id")) == target
        ]
        return _rank(scored)

    @staticmethod
    def _chunk_from_match(match: VectorMatch) -> StoredChunk:
        meta = match.metadata
        return StoredChunk(
            subsection_id=match.id,
            section_name=meta.get("section_name", ""),
            title=meta.get("title", ""),
            content=meta.get("text", ""),
            embedding=None,
            chunk_index=int(meta.get("chunk_index", 0)),
        )

    # ------------------------------------------------------------------
    # Current-role policy
    # ------------------------------------------------------------------

    @staticmethod
    def _boost_current_role(
        ranked: List[ScoredChunk],
        stored: List[StoredChunk],
        question_vector: List[float],
    ) -> List[ScoredChunk]:
        experience = [
            chunk for chunk in stored
            if resolve_kind(chunk.section_name) is SectionKind.EXPERIENCE
        ]
        if not experience:
            return ranked

        current = max(experience, key=lambda chunk: chunk.chunk_index)

        existing = next(
            (s for s in ranked if s.chunk.subsection_id == current.subsection_id),
            None,
        )
        if existing is None:
            existing = ScoredChunk(
                current,
                cosine_similarity(question_vector, coerce_embedding(current.embedding)),
            )

        logger.debug("Boosting current role entry %r to rank 1", current.title)
        rest = [s for s in ranked if s.chunk.subsection_id != current.subsection_id]
        return [existing] + rest
