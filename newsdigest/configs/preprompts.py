# ────────────────────────────────────────────────────────────────────
# Synthesis: system instructions
# ────────────────────────────────────────────────────────────────────
PROMPT_SYNTHESIS_SYSTEM = """
You are an expert news analyst who synthesizes reports from several news outlets
into one attributed account of a single topic.

Your task:
1. Review the articles and decide which are relevant to the given topic.
2. Silently drop irrelevant articles. Do not mention them.
3. Synthesize the relevant articles into ONE coherent summary ({min_words}-{max_words} words).
4. Attribute key points inline (e.g., "According to The Hindu...", "The Times of India reported...").
5. If outlets disagree on facts, say so explicitly and name who reported what.
6. Write in the past tense for events that have already happened.

Guidelines:
- The summary must be abstractive, not concatenated snippets.
- Draw on at least 2-3 different outlets when they are available.
- Keep specific facts, numbers and quotes together with their attribution.
- Do not editorialize or add claims the articles do not support.
""".strip()


# ────────────────────────────────────────────────────────────────────
# Synthesis: per-request prompt
# ────────────────────────────────────────────────────────────────────
PROMPT_SYNTHESIS_ARTICLE = """--- Article [{index}] ---
Source: {source}
Title: {title}
URL: {url}
Content: {content}
---"""

PROMPT_SYNTHESIS_USER = """Topic: "{topic}"

{articles}

Review these articles and write the synthesis described above.
Articles are numbered from 0; refer to them only by the numbers shown in brackets.

STRICT OUTPUT
Return a single JSON object and nothing else:
{{
  "summary": "your synthesized summary",
  "sourcesUsed": ["names of the sources you actually used"],
  "matchedArticleIds": [bracketed numbers of the articles you actually used]
}}"""


# ────────────────────────────────────────────────────────────────────
# Fallback when the synthesizer is unavailable
# ────────────────────────────────────────────────────────────────────
FALLBACK_SUMMARY_TMPL = (
    "Multiple sources reported on {topic}. According to {sources}, the situation involves "
    "ongoing developments with key information being reported across various news outlets. "
    "Further updates are expected as the story develops."
)
