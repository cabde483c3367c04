"""
Citation engine: locate exact, scored quotations in source documents.

Pure functions, no I/O.  Every citation returned satisfies
``document.content[c.start_position:c.end_position] == c.excerpt``.

Scoring is a weighted term overlap:
    score = query_weight  * (query terms found  / query terms)
          + answer_weight * (answer terms found / answer terms)
A term list that is empty contributes 0.  Windows scoring at or below
``min_score`` are discarded.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable

from partnership_agent.schemas.documents import Citation, Document

DEFAULT_QUERY_WEIGHT = 0.6
DEFAULT_ANSWER_WEIGHT = 0.4
DEFAULT_MIN_SCORE = 0.1
DEFAULT_EXCERPT_LENGTH = 200
DEFAULT_CONTEXT_LENGTH = 50
MAX_EXCERPTS_PER_DOCUMENT = 3
SENTENCE_WINDOW = 3
ELLIPSIS = "..."

STOP_WORDS = frozenset({
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
    "by", "from", "up", "about", "into", "through", "during", "before",
    "after", "above", "below", "between", "among", "within", "without",
    "this", "that", "these", "those", "what", "which", "who", "when",
    "where", "why", "how", "can", "could", "should", "would", "will",
    "have", "has", "had", "is", "are", "was", "were", "be", "been", "being",
})

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
# Separator between tokens of a joined window when mapping it back onto
# the source: the whitespace and sentence punctuation dropped by the split.
_WINDOW_GAP = r"[\s.!?]+"


# ── Text helpers ────────────────────────────────────────────────────

def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def _is_term_separator(ch: str) -> bool:
    return ch.isspace() or unicodedata.category(ch).startswith("P")


def _split_terms(text: str) -> list[str]:
    """Split on runs of whitespace and Unicode punctuation.

    Symbols such as ``+`` or ``$`` stay inside the word.
    """
    words: list[str] = []
    current: list[str] = []
    for ch in text:
        if _is_term_separator(ch):
            if current:
                words.append("".join(current))
                current = []
        else:
            current.append(ch)
    if current:
        words.append("".join(current))
    return words


def extract_key_terms(text: str) -> list[str]:
    """Lower-cased content words longer than 3 chars, deduplicated in order."""
    seen: set[str] = set()
    terms: list[str] = []
    for word in _split_terms(text.lower()):
        if len(word) <= 3 or word in STOP_WORDS or word in seen:
            continue
        seen.add(word)
        terms.append(word)
    return terms


def truncate_to_length(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        return truncated[:last_space] + ELLIPSIS
    return truncated + ELLIPSIS


def score_text(
    text: str,
    query_terms: list[str],
    answer_terms: list[str],
    *,
    query_weight: float = DEFAULT_QUERY_WEIGHT,
    answer_weight: float = DEFAULT_ANSWER_WEIGHT,
) -> float:
    """Weighted share of query and answer terms contained in ``text``."""
    lowered = text.lower()
    query_score = (
        sum(1 for t in query_terms if t in lowered) / len(query_terms)
        if query_terms else 0.0
    )
    answer_score = (
        sum(1 for t in answer_terms if t in lowered) / len(answer_terms)
        if answer_terms else 0.0
    )
    score = query_score * query_weight + answer_score * answer_weight
    return min(1.0, max(0.0, score))


# ── Public API ──────────────────────────────────────────────────────

def find_relevant_excerpts(
    content: str,
    query: str,
    answer: str,
    max_excerpts: int = 3,
    excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
    *,
    query_weight: float = DEFAULT_QUERY_WEIGHT,
    answer_weight: float = DEFAULT_ANSWER_WEIGHT,
    min_score: float = DEFAULT_MIN_SCORE,
) -> list[str]:
    """
    Slide a three-sentence window over ``content`` and return the best
    scoring windows, highest first.

    Windows longer than ``excerpt_length`` are cut at the last space
    before the limit and suffixed with ``...``.
    """
    query_terms = extract_key_terms(query)
    answer_terms = extract_key_terms(answer)
    sentences = split_sentences(content)

    scored: list[tuple[str, float]] = []
    for i in range(len(sentences)):
        window = " ".join(sentences[i:i + SENTENCE_WINDOW])
        if len(window) > excerpt_length:
            window = truncate_to_length(window, excerpt_length)
        score = score_text(
            window, query_terms, answer_terms,
            query_weight=query_weight, answer_weight=answer_weight,
        )
        if score > min_score:
            scored.append((window, score))

    # sorted() is stable: equal scores keep document order
    scored = sorted(scored, key=lambda item: item[1], reverse=True)
    return [text for text, _ in scored[:max_excerpts]]


def locate_excerpt(content: str, excerpt: str) -> tuple[int, int] | None:
    """
    Find the first case-insensitive occurrence of ``excerpt`` in ``content``.

    Windows are built from trimmed sentences joined by single spaces, so
    when the literal text is not present the excerpt is matched again with
    any run of whitespace or sentence punctuation allowed between its
    words.  Returns ``(start, end)`` or ``None``.
    """
    if not excerpt.strip():
        return None

    match = re.search(re.escape(excerpt), content, re.IGNORECASE)
    if match:
        return match.start(), match.end()

    core = excerpt[:-len(ELLIPSIS)] if excerpt.endswith(ELLIPSIS) else excerpt
    tokens = core.split()
    if not tokens:
        return None
    pattern = _WINDOW_GAP.join(re.escape(tok) for tok in tokens)
    match = re.search(pattern, content, re.IGNORECASE)
    if match and match.end() > match.start():
        return match.start(), match.end()
    return None


def create_citation(
    document: Document,
    excerpt: str,
    start_position: int,
    end_position: int,
    relevance_score: float,
    *,
    context_length: int = DEFAULT_CONTEXT_LENGTH,
) -> Citation:
    content = document.content
    context_before = content[max(start_position - context_length, 0):start_position].strip()
    context_after = content[end_position:min(end_position + context_length, len(content))].strip()
    return Citation(
        document_id=document.id,
        document_title=document.title,
        category=document.category,
        excerpt=excerpt,
        start_position=start_position,
        end_position=end_position,
        relevance_score=relevance_score,
        context_before=context_before,
        context_after=context_after,
    )


def extract_citations(
    query: str,
    answer: str,
    documents: Iterable[Document],
    *,
    query_weight: float = DEFAULT_QUERY_WEIGHT,
    answer_weight: float = DEFAULT_ANSWER_WEIGHT,
    min_score: float = DEFAULT_MIN_SCORE,
    excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
    context_length: int = DEFAULT_CONTEXT_LENGTH,
    max_per_document: int = MAX_EXCERPTS_PER_DOCUMENT,
) -> list[Citation]:
    """
    Citations for ``answer`` across ``documents``, highest score first.

    At most ``max_per_document`` citations per document.  Excerpts that
    cannot be located in the source text are skipped.
    """
    query_terms = extract_key_terms(query)
    answer_terms = extract_key_terms(answer)

    citations: list[Citation] = []
    for document in documents:
        excerpts = find_relevant_excerpts(
            document.content, query, answer,
            max_excerpts=max_per_document,
            excerpt_length=excerpt_length,
            query_weight=query_weight,
            answer_weight=answer_weight,
            min_score=min_score,
        )
        for excerpt in excerpts[:max_per_document]:
            span = locate_excerpt(document.content, excerpt)
            if span is None:
                continue
            start, end = span
            exact = document.content[start:end]
            score = score_text(
                exact, query_terms, answer_terms,
                query_weight=query_weight, answer_weight=answer_weight,
            )
            citations.append(
                create_citation(
                    document, exact, start, end, score,
                    context_length=context_length,
                )
            )

    return sorted(citations, key=lambda c: c.relevance_score, reverse=True)
