"""
Quality checks on the final synthesis.

``validate_summary`` applies the length and source-count policy and lists every
problem it finds. The hard word limits (50..400) are deliberately wider than
the 200-300 word target given to the synthesizer.

``passes_length_gate`` is the persistence gate: a summary with fewer than
``min_chars`` characters of text is never stored. Anything above the gate is
storable even when ``validate_summary`` flags it; the step only warns.

The source checks count the cited list as given. ``source_count`` reports the
number of distinct non-blank outlets in it.
"""

from typing import Optional, Sequence

from loguru import logger

from ..core.base import PipelineStep
from ..core.models import DigestState, ValidationReport

MIN_WORDS = 50
MAX_WORDS = 400
MIN_SOURCES = 2
MIN_PERSIST_CHARS = 50

TOO_SHORT = "too short"
TOO_LONG = "too long"
NO_SOURCES = "no sources cited"
LOW_DIVERSITY = "insufficient source diversity"


def validate_summary(summary_text: Optional[str], sources_used: Optional[Sequence[str]]) -> ValidationReport:
    word_count = len((summary_text or "").split())
    cited = list(sources_used or [])
    distinct = {s.strip() for s in cited if isinstance(s, str) and s.strip()}

    issues = []
    if word_count < MIN_WORDS:
        issues.append(TOO_SHORT)
    if word_count > MAX_WORDS:
        issues.append(TOO_LONG)
    if not cited:
        issues.append(NO_SOURCES)
    if len(cited) < MIN_SOURCES:
        issues.append(LOW_DIVERSITY)

    return ValidationReport(
        valid=not issues,
        issues=issues,
        word_count=word_count,
        source_count=len(distinct),
    )


def passes_length_gate(summary_text: Optional[str], min_chars: int = MIN_PERSIST_CHARS) -> bool:
    return len((summary_text or "").strip()) >= min_chars


class QualityStep(PipelineStep):
    """
    Config keys:
      - min_persist_chars: int (default: 50)
    """

    def execute(self, state: DigestState) -> DigestState:
        if state.synthesis is None:
            return state

        summary = state.synthesis.summary_text
        report = validate_summary(summary, state.synthesis.sources_used)
        state.validation = report
        min_chars = self.config.get("min_persist_chars", MIN_PERSIST_CHARS)
        state.persistable = passes_length_gate(summary, min_chars)

        if report.valid:
            print(f"[{self.__class__.__name__}] Summary passed ({report.word_count} words, "
                  f"{report.source_count} sources).")
        elif state.persistable:
            logger.warning("Summary for '{}' stored with issues: {}", state.topic, ", ".join(report.issues))
        else:
            print(f"[{self.__class__.__name__}] Summary rejected: below {min_chars} characters.")
        return state
