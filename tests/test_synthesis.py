import json

import pytest

from newsdigest.core.models import DigestState, ParsedFallback, ParsedStructured
from newsdigest.steps.synthesis import (
    SynthesisStep,
    build_request,
    extract_structured_block,
    parse_response,
    parse_synthesis_output,
    synthesize,
)


@pytest.fixture
def evidence(make_evidence):
    return make_evidence(
        ("The Hindu", "Results announced", "The Election Commission announced the final results today."),
        ("Times of India", "Counting ends", "Counting of votes concluded across all constituencies."),
        ("Indian Express", "Observers certify", "International observers certified the election as fair."),
    )


def _never_called(request):
    raise AssertionError("synthesizer must not be called")


def test_prompt_lists_every_item_with_zero_based_index(evidence):
    request = build_request("elections", evidence)
    assert request.evidence_size == 3
    assert 'Topic: "elections"' in request.user
    for i, item in enumerate(evidence):
        assert f"--- Article [{i}] ---" in request.user
        assert f"Source: {item.source_name}" in request.user
        assert f"URL: {item.url}" in request.user
        assert item.content in request.user
    assert "--- Article [3] ---" not in request.user
    assert "200-300 words" in request.system
    assert "matchedArticleIds" in request.user


def test_prompt_carries_the_full_body(make_evidence):
    evidence = make_evidence(
        ("The Hindu", "Results", "Polls closed at six. Counting began overnight. Turnout reached 67 percent."),
        ("Times of India", "Turnout", "Officials released the final turnout figures on Monday."),
    )
    assert "Turnout reached 67 percent." in build_request("elections", evidence).user


def test_prompt_word_band_is_configurable(evidence):
    assert "150-250 words" in build_request("elections", evidence, min_words=150, max_words=250).system
    with pytest.raises(ValueError):
        build_request("elections", evidence, min_words=300, max_words=200)


def test_parses_clean_json():
    raw = json.dumps({"summary": "A summary.", "sourcesUsed": ["The Hindu"], "matchedArticleIds": [0, 2]})
    result = parse_response(raw, 3)
    assert result.summary_text == "A summary."
    assert result.sources_used == ["The Hindu"]
    assert result.matched_article_indices == [0, 2]
    assert not result.used_fallback


def test_parses_json_embedded_in_prose_and_fences():
    raw = (
        "Sure! Here is the synthesis you asked for:\n```json\n"
        '{"summary": "Votes were counted {quickly}.", "sourcesUsed": ["Times of India",], '
        '"matchedArticleIds": ["1", 1, 2.0],}\n```\nLet me know if you need more.'
    )
    result = parse_response(raw, 3)
    assert result.summary_text == "Votes were counted {quickly}."
    assert result.sources_used == ["Times of India"]
    assert result.matched_article_indices == [1, 2]
    assert not result.used_fallback


def test_picks_the_valid_block_among_several():
    raw = 'Notes: {not json} and then {"summary": "Real one.", "matchedArticleIds": [0]}'
    assert extract_structured_block(raw) == {"summary": "Real one.", "matchedArticleIds": [0]}


def test_out_of_range_indices_are_dropped():
    raw = json.dumps({"summary": "S.", "sourcesUsed": [], "matchedArticleIds": [-1, 0, 1, 5, 99, True, "x", None]})
    assert parse_response(raw, 2).matched_article_indices == [0, 1]


def test_unknown_sources_are_dropped():
    raw = json.dumps({"summary": "S.", "sourcesUsed": ["the hindu", "Reuters", "The Hindu"], "matchedArticleIds": []})
    result = parse_response(raw, 3, source_names=["The Hindu", "Times of India"])
    assert result.sources_used == ["The Hindu"]


@pytest.mark.parametrize("raw", [
    "complete garbage with no structure",
    "{{{{ broken",
    '{"sourcesUsed": ["A"]}',
    '{"summary": 42}',
    "[1, 2, 3]",
    "",
    None,
])
def test_garbage_falls_back_without_raising(raw):
    result = parse_response(raw, 3)
    assert result.used_fallback
    assert result.summary_text is not None
    assert result.sources_used == []
    assert result.matched_article_indices == []


def test_fallback_keeps_raw_text_as_summary():
    parsed = parse_synthesis_output("  The model ignored the format.  ")
    assert isinstance(parsed, ParsedFallback)
    assert parsed.raw_text == "The model ignored the format."
    assert isinstance(parse_synthesis_output('{"summary": "ok"}'), ParsedStructured)


def test_zero_evidence_makes_no_call():
    result = synthesize("elections", [], _never_called)
    assert result.summary_text == ""
    assert result.sources_used == []
    assert not result.used_fallback


def test_single_item_bypasses_synthesizer(make_evidence):
    body = (
        "The Election Commission announced the results. Counting ended before midnight. "
        "Turnout reached 67 percent across the state."
    )
    evidence = make_evidence(("The Hindu", "Results announced", body))
    result = synthesize("elections", evidence, _never_called)
    assert result.summary_text == f"Results announced\n\n{body}"
    assert result.sources_used == ["The Hindu"]
    assert result.matched_article_indices == [0]


def test_synthesizer_output_is_parsed(evidence):
    seen = {}

    def generate(request):
        seen["request"] = request
        return json.dumps({
            "summary": "According to The Hindu, results were announced.",
            "sourcesUsed": ["The Hindu", "Indian Express"],
            "matchedArticleIds": [0, 2, 7],
        })

    result = synthesize("elections", evidence, generate)
    assert seen["request"].evidence_size == 3
    assert result.sources_used == ["The Hindu", "Indian Express"]
    assert result.matched_article_indices == [0, 2]
    assert not result.used_fallback


@pytest.mark.parametrize("error", [TimeoutError("timed out"), RuntimeError("LLM Service Error")])
def test_failed_call_uses_templated_fallback(evidence, error):
    def generate(request):
        raise error

    result = synthesize("elections", evidence, generate)
    assert result.used_fallback
    assert result.summary_text.startswith("Multiple sources reported on elections.")
    assert "The Hindu and Times of India and Indian Express" in result.summary_text
    assert result.sources_used == ["The Hindu", "Times of India", "Indian Express"]
    assert result.matched_article_indices == [0, 1, 2]


def test_step_uses_llm_and_records_prompt(evidence, monkeypatch):
    calls = []

    def fake_call(self, prompt, model, temperature, max_tokens=None, system=None):
        calls.append({"prompt": prompt, "system": system, "model": model})
        return '{"summary": "Done.", "sourcesUsed": ["The Hindu"], "matchedArticleIds": [0]}'

    monkeypatch.setattr("newsdigest.core.llm.LLMService.call", fake_call)
    step = SynthesisStep({"model": "test-model", "llm_settings": {"api_key": "x"}})
    state = step.execute(DigestState(topic="elections", evidence=evidence))

    assert len(calls) == 1
    assert calls[0]["model"] == "test-model"
    assert calls[0]["system"] == state.prompt.system
    assert state.synthesis.summary_text == "Done."
    assert state.generated_at.endswith("Z")


def test_step_skips_llm_without_evidence(monkeypatch):
    def fake_call(*args, **kwargs):
        raise AssertionError("synthesizer must not be called")

    monkeypatch.setattr("newsdigest.core.llm.LLMService.call", fake_call)
    state = SynthesisStep({}).execute(DigestState(topic="elections"))
    assert state.synthesis.summary_text == ""
    assert state.prompt is None


def test_parsed_output_is_selected_by_kind():
    from pydantic import TypeAdapter

    from newsdigest.core.models import ParsedOutput

    adapter = TypeAdapter(ParsedOutput)
    assert isinstance(adapter.validate_python({"kind": "fallback", "raw_text": "x"}), ParsedFallback)
    parsed = adapter.validate_python({"kind": "structured", "summary": "s", "indices": [0]})
    assert isinstance(parsed, ParsedStructured)
