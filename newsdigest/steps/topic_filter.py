"""
Topic Filter: cheap lexical pre-filter of the fetched articles.

The semantic judgement ("is this really about the topic?") is left to the
synthesizer. This step only drops articles that share no topic word at all.

Matching rules:
- The topic is lowercased and split on whitespace; words of 2 characters or
  fewer ("is", "to", "of") are ignored.
- A blank topic, or one with no remaining words, keeps every article.
- An article is kept if any topic word occurs as a *substring* of
  ``title + " " + body`` (lowercased). Substring matching is deliberate, so
  "election" also matches "elections" (and "rocket" matches "rocketry").

Inputs:
- state.articles, state.topic

Outputs:
- state.articles narrowed to the matching articles
- state.topic_matches: url -> TopicMatch (title/body hit) for each kept article,
  kept for the debug log and the JSON dump; the reducer ranks on its own
- state.error set when nothing is left, so the caller can tell "no relevant
  articles" apart from an empty summary.
"""

from typing import Dict, List

from ..core.base import PipelineStep
from ..core.models import DigestState, RawArticle, TopicMatch

MIN_TOKEN_LENGTH = 3


def topic_tokens(topic: str) -> List[str]:
    if not topic or not topic.strip():
        return []
    return [w for w in topic.lower().split() if len(w) >= MIN_TOKEN_LENGTH]


def match_topic(article: RawArticle, tokens: List[str]) -> TopicMatch:
    """Report whether (and where) any of ``tokens`` occurs in the article."""
    if not tokens:
        return TopicMatch(matched=True)

    title = (article.title or "").lower()
    body = (article.body or "").lower()
    # The concatenation can produce a hit spanning the title/body boundary.
    joined = f"{title} {body}"

    hits = [t for t in tokens if t in joined]
    return TopicMatch(
        matched=bool(hits),
        in_title=any(t in title for t in hits),
        in_body=any(t in body for t in hits),
        tokens=hits,
    )


def filter_articles(articles: List[RawArticle], topic: str) -> List[RawArticle]:
    tokens = topic_tokens(topic)
    if not tokens:
        return list(articles)
    return [a for a in articles if match_topic(a, tokens).matched]


def no_relevant_articles(topic: str) -> str:
    return f'No relevant articles found for topic: "{topic}". Try a different keyword.'


class TopicFilterStep(PipelineStep):
    def execute(self, state: DigestState) -> DigestState:
        tokens = topic_tokens(state.topic)
        if not tokens:
            print(f"[{self.__class__.__name__}] No usable topic words in '{state.topic}', keeping all articles.")
            return state

        kept: List[RawArticle] = []
        matches: Dict[str, TopicMatch] = {}
        for article in state.articles:
            m = match_topic(article, tokens)
            if m.matched:
                kept.append(article)
                matches[article.url] = m

        print(f"[{self.__class__.__name__}] {len(kept)}/{len(state.articles)} articles match {tokens}.")

        state.articles = kept
        state.topic_matches = matches
        if not kept and not state.error:
            state.error = no_relevant_articles(state.topic)
        return state
