"""Question classification and templated answer composition.

A deterministic rule engine: the question is classified by ordered
keyword checks, and each category picks sentences from the retrieved
context with its own keyword filter.  Nothing here is learned; the
keyword sets and their order decide every answer.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from enum import Enum

from docqa.ingestion.chunker import split_into_sentences

MIN_SENTENCE_CHARS = 20
MAX_CANDIDATE_SENTENCES = 15

BASED_ON = "Based on your documents:"
ACCORDING_TO = "According to your documents:"
NO_CLEAR_ANSWER = (
    "I found some information in your documents, but couldn't extract a "
    "clear answer to your question."
)


class QuestionCategory(str, Enum):
    OVERVIEW = "overview"
    LIST = "list"
    HOW = "how"
    WHY = "why"
    WHEN_WHERE = "when_where"
    GENERAL = "general"


# ── 1. Classification ─────────────────────────────────────────────────


def _is_overview(q: str) -> bool:
    if any(word in q for word in ("about", "overview", "summary")):
        return True
    return "what" in q and ("document" in q or "project" in q)


# Evaluated top to bottom; the first matching rule wins.
CLASSIFICATION_RULES: list[tuple[QuestionCategory, Callable[[str], bool]]] = [
    (QuestionCategory.OVERVIEW, _is_overview),
    (QuestionCategory.LIST, lambda q: "list" in q or "what are" in q),
    (QuestionCategory.HOW, lambda q: "how" in q),
    (QuestionCategory.WHY, lambda q: "why" in q),
    (QuestionCategory.WHEN_WHERE, lambda q: "when" in q or "where" in q),
]


def classify_question(question: str) -> QuestionCategory:
    """Return the category of *question* (substring checks on its lower-case form)."""
    q = question.lower().strip()
    for category, predicate in CLASSIFICATION_RULES:
        if predicate(q):
            return category
    return QuestionCategory.GENERAL


# ── 2. Candidate sentences ────────────────────────────────────────────


def candidate_sentences(texts: Iterable[str]) -> list[str]:
    """Sentences of the combined *texts*, at least 20 characters, first 15 only."""
    sentences = split_into_sentences(" ".join(texts))
    return [s for s in sentences if len(s) >= MIN_SENTENCE_CHARS][:MAX_CANDIDATE_SENTENCES]


def _containing(sentences: list[str], keywords: Iterable[str]) -> list[str]:
    keywords = tuple(keywords)
    return [s for s in sentences if any(k in s.lower() for k in keywords)]


def _format(prefix: str, sentences: list[str], separator: str = "\n\n") -> str:
    return f"{prefix}\n\n{separator.join(sentences)}"


# ── 3. Per-category builders ──────────────────────────────────────────

OVERVIEW_KEYWORDS = (
    "overview", "introduction", "document", "project",
    "system", "assignment", "implements", "designed",
)
LIST_KEYWORDS = ("first", "second", "include", "contains", "consists")
HOW_KEYWORDS = ("step", "process", "method", "procedure", "implement", "create", "build", "setup")
HOW_SEQUENCE = re.compile(r"\b(first|then|next|finally|after)\b")
INSTRUCTION_KEYWORDS = ("must", "should", "need to", "required")
WHY_KEYWORDS = ("because", "since", "reason", "purpose", "goal", "objective", "due to", "in order to")
WHEN_KEYWORDS = ("time", "date", "when", "during", "before", "after")
WHERE_KEYWORDS = ("location", "directory", "path", "where", "environment", "system")
GENERAL_STOPWORDS = frozenset({"what", "how", "why", "when", "where", "does", "this"})

_NUMBERED_ITEM = re.compile(r"^\d+[.)]\s")


def build_overview(question: str, sentences: list[str]) -> str:
    picked = _containing(sentences, OVERVIEW_KEYWORDS)
    return _format(BASED_ON, (picked or sentences)[:3], " ")


def build_list(question: str, sentences: list[str]) -> str:
    items = [s for s in sentences if _NUMBERED_ITEM.match(s) or any(k in s.lower() for k in LIST_KEYWORDS)]
    if items:
        return _format(BASED_ON, items[:5])
    return _format(BASED_ON, sentences[:4])


def build_how(question: str, sentences: list[str]) -> str:
    steps = [
        s for s in sentences
        if any(k in s.lower() for k in HOW_KEYWORDS) or HOW_SEQUENCE.search(s.lower())
    ]
    if steps:
        return _format(BASED_ON, steps[:4])
    instructions = _containing(sentences, INSTRUCTION_KEYWORDS)
    return _format(BASED_ON, (instructions or sentences)[:3])


def build_why(question: str, sentences: list[str]) -> str:
    reasons = _containing(sentences, WHY_KEYWORDS)
    return _format(ACCORDING_TO, (reasons or sentences)[:3])


def build_when_where(question: str, sentences: list[str]) -> str:
    keywords = WHEN_KEYWORDS if "when" in question.lower() else WHERE_KEYWORDS
    picked = _containing(sentences, keywords)
    return _format(BASED_ON, (picked or sentences)[:3])


def build_general(question: str, sentences: list[str]) -> str:
    terms = [w for w in question.lower().split() if len(w) > 3 and w not in GENERAL_STOPWORDS]
    relevant = _containing(sentences, terms) if terms else []
    if relevant:
        return _format(BASED_ON, relevant[:4])
    return _format(BASED_ON, sentences[:3])


BUILDERS: dict[QuestionCategory, Callable[[str, list[str]], str]] = {
    QuestionCategory.OVERVIEW: build_overview,
    QuestionCategory.LIST: build_list,
    QuestionCategory.HOW: build_how,
    QuestionCategory.WHY: build_why,
    QuestionCategory.WHEN_WHERE: build_when_where,
    QuestionCategory.GENERAL: build_general,
}


def compose_answer(question: str, context_texts: Iterable[str]) -> str:
    """Build the templated answer to *question* from retrieved chunk texts."""
    sentences = candidate_sentences(context_texts)
    if not sentences:
        return NO_CLEAR_ANSWER
    return BUILDERS[classify_question(question)](question, sentences).strip()
