"""
Answer Composer

Prompts the completion model with retrieved chunks and turns its output
into user-facing answers, summaries and suggested questions.

Model failures never reach the caller: every operation has a fixed
fallback so question answering degrades to a polite message instead of an
error.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from ..cache.store import ResponseCache
from ..config import settings
from ..core.errors import CompletionError
from ..db.models import Document
from ..llm.client import LLMClient
from .retriever import ScoredChunk

logger = logging.getLogger("documet.composer")


NO_CONTEXT_ANSWER = (
    "I couldn't find specific information about that in this document. "
    "Could you try rephrasing your question or ask about something else?"
)
FALLBACK_ANSWER = "I need more specific information to answer your question accurately."
FALLBACK_SUMMARY = (
    "This document contains important information that can be explored through questions."
)
FALLBACK_OVERVIEW_QUESTIONS = [
    "What are the key points in this document?",
    "What is the main purpose of this document?",
    "What important details should I know about?",
]
FALLBACK_SUGGESTED_QUESTIONS = [
    "What are the key points in this document?",
    "What is the main purpose of this document?",
    "What are the important details mentioned?",
    "What should I know about this document?",
    "What are the highlights of this document?",
    "What information is most relevant here?",
    "What are the key takeaways?",
    "What would you like me to know about this?",
]

SUMMARY_EXCERPT_LENGTH = 5000
QUESTIONS_EXCERPT_LENGTH = 3000
OVERVIEW_QUESTION_COUNT = 3
MAX_SUGGESTED_QUESTIONS = 10

_SUMMARY_BLOCK = re.compile(r"Summary:\s*([\s\S]*?)(?=Questions:|$)")
_QUESTIONS_BLOCK = re.compile(r"Questions:\s*((?:1\.|2\.|3\.)[\s\S]*)")
_NUMBERING = re.compile(r"\d+\.\s*")
_LEADING_NUMBER = re.compile(r"^\d+\.\s*")


class Persona(str, Enum):
    DOCUMENT_ASSISTANT = "document_assistant"
    CANDIDATE = "candidate"

    @classmethod
    def for_document(cls, document: Document) -> "Persona":
        return cls.CANDIDATE if document.kind == "resume" else cls.DOCUMENT_ASSISTANT


@dataclass(frozen=True)
class Answer:
    answer_text: str
    cited_sections: List[str]
    confidence: float


@dataclass(frozen=True)
class Overview:
    summary: str
    questions: List[str] = field(default_factory=list)


def _display_name(document: Document) -> str:
    return document.file_name or "Document"


def _excerpt(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _system_prompt(persona: Persona, document: Document) -> str:
    if persona is Persona.CANDIDATE:
        return (
            "You are the candidate described in this resume, answering questions "
            "from a recruiter. Speak in the first person, be confident and concise, "
            "and only use facts from the resume sections you are given. If something "
            "isn't covered, say so briefly and mention related experience you do have."
        )

    return (
        "You are a helpful document assistant. Answer questions directly and "
        "naturally based on the document content.\n\n"
        "Guidelines:\n"
        "1. Give direct, useful answers from the document\n"
        "2. Be conversational and helpful\n"
        "3. If information isn't available, suggest what IS available instead\n"
        "4. Focus on being helpful rather than defensive\n"
        "5. Don't start responses with disclaimers about what the document lacks\n\n"
        f"Document: {_display_name(document)}"
    )


def _user_prompt(question: str, chunks: Sequence[ScoredChunk]) -> str:
    context = "\n\n".join(f"{c.section_name}: {c.content}" for c in chunks)
    return (
        f"Question: {question}\n\n"
        f"Relevant document sections:\n{context}\n\n"
        "Answer the question directly using the information above. Be helpful and "
        "conversational. If the exact information isn't available, mention what "
        "related information IS available in the document."
    )


def cited_sections(chunks: Sequence[ScoredChunk]) -> List[str]:
    """Unique section names in retrieval order."""
    seen: List[str] = []
    for chunk in chunks:
        if chunk.section_name not in seen:
            seen.append(chunk.section_name)
    return seen


def parse_overview(content: str) -> Overview:
    """
    Parse a `Summary: ... Questions: 1. ... 2. ... 3. ...` completion.
    """
    summary = ""
    questions: List[str] = []

    summary_match = _SUMMARY_BLOCK.search(content)
    if summary_match:
        summary = summary_match.group(1).strip()

    questions_match = _QUESTIONS_BLOCK.search(content)
    if questions_match:
        questions = [
            q.strip()
            for q in _NUMBERING.split(questions_match.group(1))
            if q.strip()
        ][:OVERVIEW_QUESTION_COUNT]

    return Overview(
        summary=summary or FALLBACK_SUMMARY,
        questions=questions or list(FALLBACK_OVERVIEW_QUESTIONS),
    )


def parse_question_list(content: str) -> List[str]:
    """
    Parse a JSON array of questions, or failing that, the lines of the
    completion. Either way only entries containing a question mark are
    kept, at most MAX_SUGGESTED_QUESTIONS of them.
    """
    content = content.strip()
    if not content:
        return []

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, list):
        candidates = [str(q) for q in parsed]
    else:
        candidates = content.split("\n")

    return [
        _LEADING_NUMBER.sub("", line).strip()
        for line in candidates
        if line.strip() and "?" in line
    ][:MAX_SUGGESTED_QUESTIONS]


class AnswerComposer:
    """
    Completion-backed answer, summary and question generation.
    """

    def __init__(self, llm: LLMClient, cache: Optional[ResponseCache] = None) -> None:
        self._llm = llm
        self._cache = cache

    async def compose(
        self,
        question: str,
        chunks: Sequence[ScoredChunk],
        document: Document,
        persona: Optional[Persona] = None,
    ) -> Answer:
        """
        Answer ``question`` from the retrieved ``chunks``.

        Confidence is the top chunk's score. With no chunks the model is
        not called at all.
        """
        if not chunks:
            return Answer(answer_text=NO_CONTEXT_ANSWER, cited_sections=[], confidence=0.0)

        persona = persona or Persona.for_document(document)
        messages = [
            {"role": "system", "content": _system_prompt(persona, document)},
            {"role": "user", "content": _user_prompt(question, chunks)},
        ]

        try:
            text = await self._llm.complete(
                messages,
                max_tokens=settings.qa_max_tokens,
                temperature=settings.qa_temperature,
            )
        except CompletionError as exc:
            logger.warning("Answer generation failed for document %s: %s", document.id, exc)
            text = ""

        return Answer(
            answer_text=text or FALLBACK_ANSWER,
            cited_sections=cited_sections(chunks),
            confidence=float(chunks[0].score),
        )

    async def summarize(self, document: Document) -> Overview:
        """
        A 2-3 sentence summary plus three starter questions.
        """
        if self._cache is not None:
            cached = self._cache.get(document.id, "summary")
            if cached is not None:
                return cached

        prompt = (
            "Analyze this document and generate:\n\n"
            "1. A concise, informative summary (2-3 sentences)\n"
            "2. 3 highly relevant, specific questions that users would naturally "
            "ask about this content\n\n"
            f'Document: "{_display_name(document)}"\n'
            f"Content: {_excerpt(document.text, SUMMARY_EXCERPT_LENGTH)}\n\n"
            "Requirements for questions:\n"
            "- Must be directly answerable from the document content\n"
            "- Should cover different aspects (main topic, details, implications)\n"
            "- Use natural, conversational language\n"
            "- Be specific to this document, not generic\n\n"
            "Format exactly as:\n"
            "Summary: [summary]\n"
            "Questions:\n"
            "1. [question 1]\n"
            "2. [question 2]\n"
            "3. [question 3]"
        )
        messages = [
            {
                "role": "system",
                "content": (
                    "You are an expert document analyst. Create accurate summaries and "
                    "generate highly relevant, specific questions that users would "
                    "naturally ask about the document content."
                ),
            },
            {"role": "user", "content": prompt},
        ]

        try:
            content = await self._llm.complete(
                messages,
                max_tokens=settings.summary_max_tokens,
                temperature=settings.summary_temperature,
            )
        except CompletionError as exc:
            logger.warning("Summary generation failed for document %s: %s", document.id, exc)
            # Fallbacks are not cached so the next request retries the model
            return parse_overview("")

        overview = parse_overview(content)
        if self._cache is not None:
            self._cache.set(document.id, "summary", overview)
        return overview

    async def suggest_questions(self, document: Document) -> List[str]:
        if self._cache is not None:
            cached = self._cache.get(document.id, "questions")
            if cached is not None:
                return list(cached)

        prompt = (
            "Based on the following document content, generate 8-10 intelligent, "
            "relevant questions that someone might ask about this document.\n\n"
            f"Document: {_display_name(document)}\n"
            f"Content: {_excerpt(document.text, QUESTIONS_EXCERPT_LENGTH)}\n\n"
            "Generate questions that are:\n"
            "1. Specific to the content and context of this document\n"
            "2. Relevant to what someone would actually want to know\n"
            "3. Varied in nature (technical, experience, background, etc.)\n"
            "4. Natural and conversational in tone\n"
            "5. Appropriate for the document type\n\n"
            "Return only the questions as a JSON array of strings, no additional text."
        )
        messages = [
            {
                "role": "system",
                "content": (
                    "You are an expert at generating relevant questions based on document "
                    "content. Return only a JSON array of question strings."
                ),
            },
            {"role": "user", "content": prompt},
        ]

        try:
            content = await self._llm.complete(
                messages,
                max_tokens=settings.questions_max_tokens,
                temperature=settings.questions_temperature,
            )
        except CompletionError as exc:
            logger.warning("Question generation failed for document %s: %s", document.id, exc)
            return list(FALLBACK_SUGGESTED_QUESTIONS)

        questions = parse_question_list(content)
        if not questions:
            return list(FALLBACK_SUGGESTED_QUESTIONS)

        if self._cache is not None:
            self._cache.set(document.id, "questions", list(questions))
        return questions
