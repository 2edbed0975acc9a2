import pytest

from newsdigest.core.models import DigestState, SynthesisResult
from newsdigest.steps.quality import QualityStep, passes_length_gate, validate_summary


def test_forty_words_two_sources_is_too_short():
    report = validate_summary("word " * 40, ["A", "B"])
    assert not report.valid
    assert "too short" in report.issues
    assert report.word_count == 40
    assert report.source_count == 2


def test_valid_summary():
    report = validate_summary("word " * 250, ["The Hindu", "Indian Express"])
    assert report.valid
    assert report.issues == []


@pytest.mark.parametrize("words,short", [(10, True), (49, True), (50, False), (60, False)])
def test_too_short_goes_away_with_length(words, short):
    assert ("too short" in validate_summary("w " * words, ["A", "B"]).issues) is short


@pytest.mark.parametrize("words,long", [(350, False), (400, False), (401, True), (450, True)])
def test_too_long_appears_with_length(words, long):
    assert ("too long" in validate_summary("w " * words, ["A", "B"]).issues) is long


def test_no_sources_triggers_both_source_issues():
    report = validate_summary("w " * 100, [])
    assert report.issues == ["no sources cited", "insufficient source diversity"]
    assert report.source_count == 0


def test_single_source_is_not_diverse():
    report = validate_summary("w " * 100, ["The Hindu"])
    assert report.issues == ["insufficient source diversity"]


def test_source_checks_count_the_cited_list():
    report = validate_summary("w " * 100, ["The Hindu", "The Hindu"])
    assert report.issues == []
    assert report.valid
    assert report.source_count == 1


def test_issue_order_and_none_inputs():
    report = validate_summary(None, None)
    assert report.issues == ["too short", "no sources cited", "insufficient source diversity"]
    assert report.word_count == 0


def test_length_gate():
    assert not passes_length_gate("Too short to keep.")
    assert not passes_length_gate("   ")
    assert passes_length_gate("x" * 50)


def test_step_keeps_borderline_summary_but_rejects_tiny_one():
    borderline = SynthesisResult(summary_text="word " * 20, sources_used=["A", "B"])
    state = QualityStep({}).execute(DigestState(topic="t", synthesis=borderline))
    assert not state.validation.valid
    assert state.persistable

    tiny = SynthesisResult(summary_text="Nothing.", sources_used=["A", "B"])
    state = QualityStep({}).execute(DigestState(topic="t", synthesis=tiny))
    assert not state.persistable
