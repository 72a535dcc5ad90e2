"""
Relevance filter: picks the records a question is about before anything is sent to the model.

Tiers, in priority order:
  1. instructor names + 2. domain names (always unioned together)
  3. topic codes (only if 1-2 found nothing)
  4. intent keywords (only if still empty)
  5. sample of 3 records per instructor (only if still empty)
Every union is de-duplicated by (Topic Code, Instructor, Session Date).
"""
import logging
from typing import Callable, Dict, List, Sequence, Tuple

from utils.records import (
    DOMAIN_COL,
    INSTRUCTOR_COL,
    RATING_COL,
    TOPIC_COL,
    Record,
    entity_key,
    vocabulary,
)

logger = logging.getLogger(__name__)

SAMPLE_PER_INSTRUCTOR = 3

# Keyword rules for the intent tier; first rule whose keywords appear wins
RATING_KEYWORDS = ("highest rating", "top instructor")
DOMAIN_TOKENS = (
    ("backend", "Backend"),
    ("fullstack", "Fullstack"),
)

Vocabularies = Dict[str, List[str]]
Matcher = Callable[[str, Vocabularies, Sequence[Record]], List[Record]]


def _match_column(column: str, query: str, vocab: Vocabularies, records: Sequence[Record]) -> List[Record]:
    out: List[Record] = []
    for name in vocab.get(column, []):
        if name.lower() in query:
            rows = [r for r in records if r.get(column) == name]
            logger.info("relevance_match: column=%s value=%s rows=%d", column, name, len(rows))
            out.extend(rows)
    return out


def match_instructors(query: str, vocab: Vocabularies, records: Sequence[Record]) -> List[Record]:
    return _match_column(INSTRUCTOR_COL, query, vocab, records)


def match_domains(query: str, vocab: Vocabularies, records: Sequence[Record]) -> List[Record]:
    return _match_column(DOMAIN_COL, query, vocab, records)


def match_topics(query: str, vocab: Vocabularies, records: Sequence[Record]) -> List[Record]:
    return _match_column(TOPIC_COL, query, vocab, records)


def match_intent(query: str, vocab: Vocabularies, records: Sequence[Record]) -> List[Record]:
    if any(k in query for k in RATING_KEYWORDS):
        rows = [r for r in records if r.get(RATING_COL)]
        logger.info("relevance_intent: rule=top_rating rows=%d", len(rows))
        return rows
    for token, domain in DOMAIN_TOKENS:
        if token in query:
            rows = [r for r in records if r.get(DOMAIN_COL) == domain]
            logger.info("relevance_intent: rule=domain domain=%s rows=%d", domain, len(rows))
            return rows
    return []


def sample_per_instructor(query: str, vocab: Vocabularies, records: Sequence[Record]) -> List[Record]:
    out: List[Record] = []
    for name in vocab.get(INSTRUCTOR_COL, []):
        out.extend([r for r in records if r.get(INSTRUCTOR_COL) == name][:SAMPLE_PER_INSTRUCTOR])
    logger.info("relevance_sample: rows=%d", len(out))
    return out


# Each stage's matchers are unioned; the first stage with any result ends the search
STAGES: Tuple[Tuple[Matcher, ...], ...] = (
    (match_instructors, match_domains),
    (match_topics,),
    (match_intent,),
    (sample_per_instructor,),
)


def union_records(current: List[Record], extra: Sequence[Record]) -> List[Record]:
    """Append records from extra whose entity key is not already present. Order preserved."""
    seen = {entity_key(r) for r in current}
    out = list(current)
    for r in extra:
        key = entity_key(r)
        if key not in seen:
            seen.add(key)
            out.append(r)
    return out


def run_stages(
    query: str,
    vocab: Vocabularies,
    records: Sequence[Record],
    stages: Sequence[Sequence[Matcher]] = STAGES,
) -> List[Record]:
    result: List[Record] = []
    for stage in stages:
        for matcher in stage:
            result = union_records(result, matcher(query, vocab, records))
        if result:
            break
    return result


def build_vocabularies(records: Sequence[Record]) -> Vocabularies:
    return {
        INSTRUCTOR_COL: vocabulary(records, INSTRUCTOR_COL),
        DOMAIN_COL: vocabulary(records, DOMAIN_COL),
        TOPIC_COL: vocabulary(records, TOPIC_COL),
    }


def filter_relevant(query: str, records: Sequence[Record]) -> List[Record]:
    """Select the subset of records relevant to query (see module docstring for the tier policy)."""
    q = (query or "").lower()
    vocab = build_vocabularies(records)
    relevant = run_stages(q, vocab, records)
    logger.info("relevance_result: relevant=%d total=%d", len(relevant), len(records))
    return relevant
