"""Keyword scoring used to pick the calendar event a command refers to.

A tie for the top score is reported as ambiguous instead of being guessed.
"""

import logging
from typing import List, Sequence

from schedule_engine.features.intent_models import CandidateEvent, MatchResult

logger = logging.getLogger(__name__)

TITLE_PHRASE_SCORE = 5
DESCRIPTION_PHRASE_SCORE = 2
TITLE_WORD_SCORE = 2
DESCRIPTION_WORD_SCORE = 1
MIN_FALLBACK_TOKEN_LENGTH = 3


def _normalize_keywords(keywords: Sequence[str]) -> List[str]:
    return [k.strip().lower() for k in keywords or [] if k and k.strip()]


def fallback_keywords(fallback_text: str) -> List[str]:
    """Tokens of the text longer than two characters, lower-cased."""
    return [token for token in (fallback_text or "").lower().split() if len(token) >= MIN_FALLBACK_TOKEN_LENGTH]


def _word_overlap(keyword: str, words: List[str]) -> int:
    return sum(1 for word in words if keyword in word or word in keyword)


def score_candidate(candidate: CandidateEvent, keywords: Sequence[str]) -> int:
    """Sums the keyword score of one candidate across all keywords."""
    title = candidate.title.lower()
    description = candidate.description.lower()
    title_words = title.split()
    description_words = description.split()

    score = 0
    for keyword in _normalize_keywords(keywords):
        if keyword in title:
            score += TITLE_PHRASE_SCORE
        if keyword in description:
            score += DESCRIPTION_PHRASE_SCORE
        score += TITLE_WORD_SCORE * _word_overlap(keyword, title_words)
        score += DESCRIPTION_WORD_SCORE * _word_overlap(keyword, description_words)
    return score


def match(candidates: Sequence[CandidateEvent], keywords: Sequence[str], fallback_text: str = "") -> MatchResult:
    """Selects the candidate the keywords point to.

    Args:
        candidates: Events to choose from, in the order the calendar returned them.
        keywords: Search terms. When empty, terms are taken from fallback_text.
        fallback_text: The raw user text.

    Returns:
        MatchResult with either a single match, the tied candidates (in input
        order), or neither.
    """
    terms = _normalize_keywords(keywords)
    if not terms:
        terms = fallback_keywords(fallback_text)
        logger.debug(f"No search keywords given, using fallback terms from text: {terms}")
    if not terms or not candidates:
        return MatchResult()

    scored = [(candidate, score_candidate(candidate, terms)) for candidate in candidates]
    scored = [(candidate, score) for candidate, score in scored if score > 0]
    if not scored:
        logger.info(f"No event matched keywords {terms}")
        return MatchResult()

    top_score = max(score for _, score in scored)
    leaders = [candidate for candidate, score in scored if score == top_score]
    if len(leaders) == 1:
        logger.info(f"Matched event '{leaders[0].title}' (id={leaders[0].id}) with score {top_score}")
        return MatchResult(matched=leaders[0], top_score=top_score)

    logger.info(f"{len(leaders)} events tie at score {top_score} for keywords {terms}")
    return MatchResult(ambiguous_candidates=leaders, top_score=top_score)
