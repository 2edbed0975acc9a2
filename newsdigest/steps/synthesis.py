"""
Synthesis: build the prompt for the external synthesizer, call it once, and
turn whatever comes back into a SynthesisResult.

The synthesizer is treated as untrusted and fallible:
- Its reply is searched for an embedded JSON object (Markdown fences and
  trailing commas are tolerated). If none parses, the whole reply becomes the
  summary and the result is flagged ``used_fallback``.
- Reported article indices are 0-based, exactly as numbered in the prompt.
  Anything outside [0, evidence_size) is dropped; so are reported sources that
  are not in the evidence set.
- If the call itself fails (error or timeout), a templated summary naming the
  outlets in the evidence set is returned instead, with all indices matched.

Shortcuts (no external call):
- zero evidence items -> empty result
- one evidence item   -> its title and content verbatim

Inputs:
- state.topic, state.evidence
- config keys: model, temperature, max_tokens, min_words, max_words

Outputs:
- state.prompt (when the synthesizer is called), state.synthesis
- state.generated_at: UTC ISO timestamp
"""

import json
import os
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from loguru import logger

from ..configs.preprompts import (
    FALLBACK_SUMMARY_TMPL,
    PROMPT_SYNTHESIS_ARTICLE,
    PROMPT_SYNTHESIS_SYSTEM,
    PROMPT_SYNTHESIS_USER,
)
from ..core.base import PipelineStep
from ..core.models import (
    DigestState,
    EvidenceItem,
    ParsedFallback,
    ParsedOutput,
    ParsedStructured,
    StructuredPrompt,
    SynthesisResult,
)

DEFAULT_MIN_WORDS = 200
DEFAULT_MAX_WORDS = 300
DEFAULT_MODEL = "gpt-4o-mini"

SUMMARY_KEYS = ("summary", "summaryText", "summary_text")
SOURCE_KEYS = ("sourcesUsed", "sources_used", "sources")
INDEX_KEYS = ("matchedArticleIds", "matchedArticleIndices", "matched_article_indices", "indices")

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*(?=[\]}])")

Synthesizer = Callable[[StructuredPrompt], str]


# ────────────────────────────────────────────────────────────────────
# Request
# ────────────────────────────────────────────────────────────────────

def build_request(
    topic: str,
    evidence: Sequence[EvidenceItem],
    min_words: int = DEFAULT_MIN_WORDS,
    max_words: int = DEFAULT_MAX_WORDS,
) -> StructuredPrompt:
    if min_words <= 0 or max_words < min_words:
        raise ValueError(f"invalid word band {min_words}-{max_words}")

    articles = "\n\n".join(
        PROMPT_SYNTHESIS_ARTICLE.format(
            index=i,
            source=item.source_name or "Unknown",
            title=item.title,
            url=item.url,
            content=item.content or "[no content]",
        )
        for i, item in enumerate(evidence)
    )
    return StructuredPrompt(
        topic=topic,
        system=PROMPT_SYNTHESIS_SYSTEM.format(min_words=min_words, max_words=max_words),
        user=PROMPT_SYNTHESIS_USER.format(topic=topic, articles=articles),
        evidence_size=len(evidence),
    )


# ────────────────────────────────────────────────────────────────────
# Response
# ────────────────────────────────────────────────────────────────────

def _balanced_blocks(text: str) -> Iterator[str]:
    """Yield every top-level ``{...}`` block, skipping braces inside JSON strings."""
    start, depth, in_str, escape = 0, 0, False, False
    for i, ch in enumerate(text):
        if in_str:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"' and depth > 0:
            in_str = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start:i + 1]


def _candidates(text: str) -> Iterator[str]:
    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        yield text[first:last + 1]
    yield from _balanced_blocks(text)


def extract_structured_block(raw: str) -> Optional[Dict[str, Any]]:
    """Best-effort search for a JSON object inside free text."""
    text = _FENCE_RE.sub("", raw or "")
    for candidate in _candidates(text):
        for variant in (candidate, _TRAILING_COMMA_RE.sub("", candidate)):
            try:
                data = json.loads(variant)
            except (ValueError, RecursionError):
                continue
            if isinstance(data, dict):
                return data
    return None


def _first(data: Dict[str, Any], keys: Sequence[str]) -> Any:
    for k in keys:
        if k in data:
            return data[k]
    return None


def parse_synthesis_output(raw: Any) -> ParsedOutput:
    text = raw if isinstance(raw, str) else ("" if raw is None else str(raw))
    data = extract_structured_block(text)
    summary = _first(data, SUMMARY_KEYS) if data else None
    if not isinstance(summary, str) or not summary.strip():
        return ParsedFallback(raw_text=text.strip())

    sources = _first(data, SOURCE_KEYS)
    indices = _first(data, INDEX_KEYS)
    return ParsedStructured(
        summary=summary.strip(),
        sources=[s.strip() for s in sources if isinstance(s, str) and s.strip()] if isinstance(sources, list) else [],
        indices=indices if isinstance(indices, list) else [],
    )


def _coerce_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"\s*-?\d+\s*", value):
        return int(value)
    return None


def _keep_known_sources(sources: List[str], source_names: Optional[Sequence[str]]) -> List[str]:
    canonical = None
    if source_names is not None:
        canonical = {n.strip().lower(): n for n in source_names if n and n.strip()}

    out: List[str] = []
    for s in sources:
        name = s if canonical is None else canonical.get(s.lower())
        if name and name not in out:
            out.append(name)
    return out


def parse_response(raw: Any, evidence_size: int, source_names: Optional[Sequence[str]] = None) -> SynthesisResult:
    """Never raises: unusable output becomes a ``used_fallback`` result."""
    parsed = parse_synthesis_output(raw)
    if isinstance(parsed, ParsedFallback):
        return SynthesisResult(summary_text=parsed.raw_text, used_fallback=True)

    size = max(int(evidence_size or 0), 0)
    indices = {_coerce_index(v) for v in parsed.indices}
    return SynthesisResult(
        summary_text=parsed.summary,
        sources_used=_keep_known_sources(parsed.sources, source_names),
        matched_article_indices=sorted(i for i in indices if i is not None and 0 <= i < size),
    )


def _distinct_sources(evidence: Sequence[EvidenceItem]) -> List[str]:
    out: List[str] = []
    for item in evidence:
        if item.source_name and item.source_name not in out:
            out.append(item.source_name)
    return out


def fallback_summary(topic: str, evidence: Sequence[EvidenceItem]) -> SynthesisResult:
    sources = _distinct_sources(evidence)
    return SynthesisResult(
        summary_text=FALLBACK_SUMMARY_TMPL.format(
            topic=topic, sources=" and ".join(sources) or "several outlets"
        ),
        sources_used=sources,
        matched_article_indices=list(range(len(evidence))),
        used_fallback=True,
    )


def synthesize(
    topic: str,
    evidence: Sequence[EvidenceItem],
    generate: Synthesizer,
    min_words: int = DEFAULT_MIN_WORDS,
    max_words: int = DEFAULT_MAX_WORDS,
) -> SynthesisResult:
    if not evidence:
        return SynthesisResult()

    if len(evidence) == 1:
        item = evidence[0]
        return SynthesisResult(
            summary_text=f"{item.title}\n\n{item.content}",
            sources_used=[item.source_name],
            matched_article_indices=[0],
        )

    request = build_request(topic, evidence, min_words=min_words, max_words=max_words)
    try:
        raw = generate(request)
    except Exception as e:
        logger.warning("Synthesizer call failed, using templated fallback: {}", e)
        return fallback_summary(topic, evidence)

    return parse_response(raw, len(evidence), source_names=[item.source_name for item in evidence])


class SynthesisStep(PipelineStep):
    def execute(self, state: DigestState) -> DigestState:
        evidence = state.evidence
        min_words = self.config.get("min_words", DEFAULT_MIN_WORDS)
        max_words = self.config.get("max_words", DEFAULT_MAX_WORDS)

        if len(evidence) >= 2:
            state.prompt = build_request(state.topic, evidence, min_words=min_words, max_words=max_words)
            print(f"[{self.__class__.__name__}] Sending {len(evidence)} evidence items to the synthesizer...")
        else:
            print(f"[{self.__class__.__name__}] {len(evidence)} evidence item(s), skipping the synthesizer.")

        def generate(request: StructuredPrompt) -> str:
            resp = self.llm.call(
                prompt=request.user,
                system=request.system,
                model=self.config.get("model") or os.environ.get("NEWSDIGEST_MODEL", DEFAULT_MODEL),
                temperature=self.config.get("temperature", 0.7),
                max_tokens=self.config.get("max_tokens", 1024),
            )
            self.log_artifact("Raw Synthesizer Output", resp)
            return resp

        result = synthesize(state.topic, evidence, generate, min_words=min_words, max_words=max_words)
        if result.used_fallback:
            print(f"[{self.__class__.__name__}] Applied fallback summary.")

        state.synthesis = result
        state.generated_at = datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
        return state
