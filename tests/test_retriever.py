"""
Retriever Tests

Covers:
- Cosine scoring properties and malformed-embedding coercion
- Ranking, truncation and tie stability
- The current-role boost policy
- Vector-index strategy, document filtering and fallback
"""

import math

import pytest

from documet.db.vector_store import VectorEntry
from documet.services.indexer import vector_metadata
from documet.services.retriever import (
    Retriever,
    coerce_embedding,
    cosine_similarity,
    is_current_role_question,
)
from documet.tenants import namespace_for


def unit(score: float) -> list:
    """A 2-d unit vector whose cosine with [1, 0] is exactly `score`."""
    return [score, math.sqrt(1 - score * score)]


async def seed(repository, kind="resume", user_id="alice", rows=()):
    """
    Create a document with (section_name, title, embedding) rows, in order.
    """
    document = await repository.create_document(user_id, "text", f"slug-{kind}-{user_id}", kind=kind)
    sections = {}
    for index, (section_name, title, embedding) in enumerate(rows):
        if section_name not in sections:
            sections[section_name] = await repository.create_section(document.id, section_name)
        await repository.add_subsection(
            sections[section_name].id, title, f"{title} content", embedding, index
        )
    return document


@pytest.fixture
def question_embedder(embedder):
    embedder.embed_one.side_effect = None
    embedder.embed_one.return_value = [1.0, 0.0]
    return embedder


# ---------------------------------------------------------------------
# Scoring helpers
# ---------------------------------------------------------------------

class TestCosine:

    @pytest.mark.parametrize("v", [[1.0, 2.0, 3.0], [-0.5, 0.25], [1e-3, 7.0, -2.0, 0.0]])
    def test_self_and_opposite(self, v):
        assert cosine_similarity(v, v) == pytest.approx(1.0)
        assert cosine_similarity(v, [-x for x in v]) == pytest.approx(-1.0)

    def test_degenerate_vectors_score_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
        assert cosine_similarity([], [1.0]) == 0.0
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ([1, 2, 3], [1.0, 2.0, 3.0]),
            ({"0": 0.5, "1": "0.25"}, [0.5, 0.25]),
            ("not a vector", []),
            (None, []),
            (["a", "b"], []),
            ([1.0, float("nan")], []),
        ],
    )
    def test_coerce_embedding(self, raw, expected):
        assert coerce_embedding(raw) == expected


@pytest.mark.parametrize(
    "question,expected",
    [
        ("What is your current role?", True),
        ("Tell me about your PRESENT POSITION", True),
        ("What are your current responsibilities?", True),
        ("Where do you currently work?", True),
        ("What are your key skills?", False),
        ("Describe a past project", False),
    ],
)
def test_current_role_intent(question, expected):
    assert is_current_role_question(question) is expected


# ---------------------------------------------------------------------
# Cosine strategy
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_skills_question_ranks_skills_first(repository, vector_store, question_embedder):
    document = await seed(repository, kind="document", rows=[
        ("Summary", "Summary", unit(0.3)),
        ("Skills", "Skills", unit(0.9)),
        ("Education", "Degree", unit(0.2)),
    ])
    retriever = Retriever(repository, vector_store, question_embedder)

    results = await retriever.retrieve(document, "What are your key skills?", k=3)

    assert [r.title for r in results] == ["Skills", "Summary", "Degree"]
    assert results[0].score == pytest.approx(0.9)
    question_embedder.embed_one.assert_awaited_once_with("What are your key skills?")


@pytest.mark.asyncio
@pytest.mark.parametrize("k,expected", [(1, 1), (2, 2), (3, 3), (10, 3)])
async def test_result_count_is_min_of_k_and_candidates(repository, vector_store, question_embedder, k, expected):
    document = await seed(repository, kind="document", rows=[
        ("A", "a", unit(0.1)),
        ("B", "b", unit(0.5)),
        ("C", "c", unit(0.3)),
    ])
    results = await Retriever(repository, vector_store, question_embedder).retrieve(document, "q", k=k)

    assert len(results) == expected
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
async def test_ties_keep_stored_order(repository, vector_store, question_embedder):
    document = await seed(repository, kind="document", rows=[
        ("A", "first", unit(0.5)),
        ("A", "second", unit(0.5)),
        ("A", "third", unit(0.5)),
    ])
    results = await Retriever(repository, vector_store, question_embedder).retrieve(document, "q", k=3)

    assert [r.title for r in results] == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_malformed_embedding_scores_zero(repository, vector_store, question_embedder):
    document = await seed(repository, kind="document", rows=[
        ("A", "broken", "garbage"),
        ("A", "good", unit(0.4)),
        ("A", "negative", [-1.0, 0.0]),
    ])
    results = await Retriever(repository, vector_store, question_embedder).retrieve(document, "q", k=3)

    assert [r.title for r in results] == ["good", "broken", "negative"]
    assert results[1].score == 0.0


@pytest.mark.asyncio
async def test_only_target_document_is_scored(repository, vector_store, question_embedder):
    target = await seed(repository, kind="document", user_id="alice", rows=[("A", "mine", unit(0.2))])
    await seed(repository, kind="document", user_id="bob", rows=[("A", "theirs", unit(0.99))])

    results = await Retriever(repository, vector_store, question_embedder).retrieve(target, "q", k=5)

    assert [r.title for r in results] == ["mine"]


@pytest.mark.asyncio
async def test_unknown_strategy_rejected(repository, vector_store, question_embedder):
    document = await seed(repository, kind="document")

    with pytest.raises(ValueError):
        await Retriever(repository, vector_store, question_embedder).retrieve(document, "q", strategy="bm25")


# ---------------------------------------------------------------------
# Current-role boost
# ---------------------------------------------------------------------

RESUME_ROWS = [
    ("Skills", "Skills", unit(0.9)),
    ("Summary", "Summary", unit(0.8)),
    ("Experience", "Junior Developer at Globex", unit(0.1)),
    ("Experience", "Software Engineer at Acme", unit(0.3)),
]


@pytest.mark.asyncio
async def test_current_role_entry_forced_to_rank_one(repository, vector_store, question_embedder):
    document = await seed(repository, kind="resume", rows=RESUME_ROWS)

    results = await Retriever(repository, vector_store, question_embedder).retrieve(
        document, "What is your current role?", k=3
    )

    assert results[0].title == "Software Engineer at Acme"
    assert [r.title for r in results[1:]] == ["Skills", "Summary"]


@pytest.mark.asyncio
async def test_boosted_entry_inserted_when_outside_top_k(repository, vector_store, question_embedder):
    document = await seed(repository, kind="resume", rows=RESUME_ROWS)

    results = await Retriever(repository, vector_store, question_embedder).retrieve(
        document, "What is your current job?", k=1
    )

    assert [r.title for r in results] == ["Software Engineer at Acme"]
    assert results[0].score == pytest.approx(0.3)


@pytest.mark.asyncio
async def test_no_boost_for_generic_documents(repository, vector_store, question_embedder):
    document = await seed(repository, kind="document", rows=RESUME_ROWS)

    results = await Retriever(repository, vector_store, question_embedder).retrieve(
        document, "What is your current role?", k=3
    )

    assert results[0].title == "Skills"


@pytest.mark.asyncio
async def test_no_boost_for_other_questions(repository, vector_store, question_embedder):
    document = await seed(repository, kind="resume", rows=RESUME_ROWS)

    results = await Retriever(repository, vector_store, question_embedder).retrieve(
        document, "What are your key skills?", k=3
    )

    assert results[0].title == "Skills"


@pytest.mark.asyncio
async def test_boost_without_experience_is_noop(repository, vector_store, question_embedder):
    document = await seed(repository, kind="resume", rows=RESUME_ROWS[:2])

    results = await Retriever(repository, vector_store, question_embedder).retrieve(
        document, "What is your current role?", k=3
    )

    assert [r.title for r in results] == ["Skills", "Summary"]


# ---------------------------------------------------------------------
# Vector strategy
# ---------------------------------------------------------------------

async def mirror_to_index(repository, vector_store, document):
    entries = [
        VectorEntry(
            id=chunk.subsection_id,
            document_id=document.id,
            values=chunk.embedding,
            metadata=vector_metadata(
                document, chunk.section_name, chunk.title, chunk.content, chunk.chunk_index
            ),
        )
        for chunk in await repository.list_subsections(document.id)
    ]
    await vector_store.upsert(namespace_for(document.user_id), entries)


@pytest.mark.asyncio
async def test_vector_strategy_filters_to_document(repository, vector_store, question_embedder):
    target = await seed(repository, kind="document", rows=[
        ("A", "low", unit(0.2)),
        ("B", "high", unit(0.7)),
    ])
    sibling = await seed(repository, kind="resume", rows=[("A", "sibling", unit(0.99))])
    await mirror_to_index(repository, vector_store, target)
    await mirror_to_index(repository, vector_store, sibling)

    results = await Retriever(repository, vector_store, question_embedder).retrieve(
        target, "q", k=5, strategy="vector"
    )

    assert [r.title for r in results] == ["high", "low"]
    assert results[0].content == "high content"
    assert results[0].section_name == "B"


@pytest.mark.asyncio
async def test_vector_failure_falls_back_to_cosine(repository, vector_store, question_embedder):
    document = await seed(repository, kind="document", rows=[
        ("A", "low", unit(0.2)),
        ("B", "high", unit(0.7)),
    ])
    vector_store.fail_query = True

    results = await Retriever(repository, vector_store, question_embedder).retrieve(
        document, "q", k=2, strategy="vector"
    )

    assert [r.title for r in results] == ["high", "low"]


@pytest.mark.asyncio
async def test_vector_strategy_applies_boost(repository, vector_store, question_embedder):
    document = await seed(repository, kind="resume", rows=RESUME_ROWS)
    await mirror_to_index(repository, vector_store, document)

    results = await Retriever(repository, vector_store, question_embedder).retrieve(
        document, "What's your present position?", k=2, strategy="vector"
    )

    assert [r.title for r in results] == ["Software Engineer at Acme", "Skills"]
