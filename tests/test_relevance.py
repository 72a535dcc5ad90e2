from agents.relevance import (
    build_vocabularies,
    filter_relevant,
    match_domains,
    match_instructors,
    match_intent,
    match_topics,
    run_stages,
    sample_per_instructor,
    union_records,
)
from utils.records import RawSheet, entity_key, structure

HEADERS = ["Instructor", "Domain", "Topic Code", "Session Date", "Overall Average Rating", "Cohorts"]


def _records(*rows):
    return structure(RawSheet("Sheet1", [HEADERS] + [list(r) for r in rows]))


def _topics(records):
    return [r["Topic Code"] for r in records]


def test_instructor_tier_matches_case_insensitively(records):
    assert _topics(filter_relevant("Average rating for JOHN", records)) == ["B1", "F1"]


def test_two_instructors_both_included_without_duplicates(records):
    result = filter_relevant("compare john and jane", records)
    assert _topics(result) == ["B1", "F1", "B2"]
    keys = [entity_key(r) for r in result]
    assert len(keys) == len(set(keys))


def test_second_instructor_mention_never_removes_first(records):
    first = filter_relevant("john", records)
    both = filter_relevant("john and jane", records)
    assert all(r in both for r in first)


def test_domain_tier_unions_after_instructor_tier(records):
    # Jane's only session is Backend; John's Backend session is already present
    result = filter_relevant("jane in frontend", records)
    assert _topics(result) == ["B2", "F1"]


def test_domain_tier_alone(records):
    assert _topics(filter_relevant("how is backend doing", records)) == ["B1", "B2"]


def test_topic_tier_only_when_nothing_higher_matched():
    records = _records(
        ("John", "Backend", "SD-101", "2025-01-01", "4.5", ""),
        ("Jane", "Data", "ML-200", "2025-01-02", "4.0", ""),
    )
    assert _topics(filter_relevant("what about ml-200?", records)) == ["ML-200"]
    # instructor match wins; topic tier is not consulted
    assert _topics(filter_relevant("john ml-200", records)) == ["SD-101"]


def test_intent_top_rating_selects_rated_records():
    records = _records(
        ("John", "Web", "W1", "2025-01-01", "4.5", ""),
        ("Jane", "Web", "W2", "2025-01-02", "", ""),
        ("Ravi", "Data", "D1", "2025-01-03", "3.9", ""),
    )
    assert _topics(filter_relevant("who has the highest rating?", records)) == ["W1", "D1"]
    assert _topics(filter_relevant("Top instructor overall", records)) == ["W1", "D1"]


def test_intent_literal_domain_token():
    records = _records(
        ("John", "Fullstack", "FS1", "2025-01-01", "4.5", ""),
        ("Jane", "Data", "D1", "2025-01-02", "4.0", ""),
    )
    vocab = {"Instructor": [], "Domain": [], "Topic Code": []}
    assert _topics(match_intent("fullstack sessions", vocab, records)) == ["FS1"]
    assert match_intent("nothing relevant", vocab, records) == []


def test_sampling_fallback_three_per_instructor_in_vocabulary_order():
    rows = [("Ann", "X", f"A{i}", f"2025-01-0{i}", "4", "") for i in range(1, 6)]
    rows.insert(1, ("Bob", "Y", "B1", "2025-02-01", "3", ""))
    records = _records(*rows)
    result = filter_relevant("tell me something", records)
    assert _topics(result) == ["A1", "A2", "A3", "B1"]


def test_union_deduplicates_by_entity_key(records):
    duplicate = structure(RawSheet("Sheet1", [HEADERS, ["John", "Other", "B1", "2025-01-01", "1", ""]]))
    merged = union_records(list(records[:1]), duplicate + list(records[1:2]))
    assert _topics(merged) == ["B1", "F1"]
    assert merged[0]["Domain"] == "Backend"


def test_each_matcher_is_independent(records):
    vocab = build_vocabularies(records)
    assert vocab["Instructor"] == ["John", "Jane"]
    assert _topics(match_instructors("jane", vocab, records)) == ["B2"]
    assert _topics(match_domains("frontend", vocab, records)) == ["F1"]
    assert _topics(match_topics("b2", vocab, records)) == ["B2"]
    assert _topics(sample_per_instructor("", vocab, records)) == ["B1", "F1", "B2"]


def test_run_stages_stops_at_first_non_empty_stage(records):
    calls = []

    def empty(q, v, r):
        calls.append("empty")
        return []

    def first(q, v, r):
        calls.append("first")
        return list(r[:1])

    def never(q, v, r):
        calls.append("never")
        return list(r)

    result = run_stages("q", {}, records, stages=[(empty,), (first, empty), (never,)])
    assert _topics(result) == ["B1"]
    assert calls == ["empty", "first", "empty"]
