from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RawArticle(BaseModel):
    """A single document as delivered by a feed.

    Immutable once fetched. Any "update" to a story arrives as a new article
    (new URL) or collapses onto an existing one by fingerprint.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = ""
    body: str = Field(default="", validation_alias=AliasChoices("body", "content", "description"))
    source_name: str = Field(default="", validation_alias=AliasChoices("source_name", "sourceName", "source"))
    url: str = ""
    publish_time: datetime = Field(
        default_factory=_utcnow,
        validation_alias=AliasChoices("publish_time", "publishTime", "publishDate", "pubDate"),
    )

    @field_validator("title", "body", "source_name", "url", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("publish_time", mode="before")
    @classmethod
    def _missing_time_to_now(cls, v: Any) -> Any:
        return _utcnow() if v is None or v == "" else v

    @field_validator("publish_time")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        # Naive timestamps are treated as UTC so ordering never compares naive/aware.
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class TopicMatch(BaseModel):
    """Where (if anywhere) a topic hit an article."""
    matched: bool
    in_title: bool = False
    in_body: bool = False
    tokens: List[str] = Field(default_factory=list)


class NormalizedFragment(BaseModel):
    article: RawArticle
    canonical_text: str
    content_fingerprint: str
    # full body without markup; canonical_text is only the dedup lead
    body: str = ""


class EvidenceItem(BaseModel):
    fragment: NormalizedFragment
    rank: int
    included_in_final_set: bool = True

    # --- display helpers (no need to go back to the feed) ---
    @property
    def title(self) -> str:
        return self.fragment.article.title

    @property
    def source_name(self) -> str:
        return self.fragment.article.source_name

    @property
    def url(self) -> str:
        return self.fragment.article.url

    @property
    def publish_time(self) -> datetime:
        return self.fragment.article.publish_time

    @property
    def content(self) -> str:
        return self.fragment.body


class DroppedArticle(BaseModel):
    """Audit record for a candidate the reducer rejected."""
    article: RawArticle
    reason: Literal["exact_duplicate", "near_duplicate", "displaced_for_diversity"]
    duplicate_of: str = ""
    similarity: Optional[float] = None


class StructuredPrompt(BaseModel):
    topic: str
    system: str
    user: str
    evidence_size: int


class ParsedStructured(BaseModel):
    kind: Literal["structured"] = "structured"
    summary: str
    sources: List[str] = Field(default_factory=list)
    indices: List[Any] = Field(default_factory=list)


class ParsedFallback(BaseModel):
    kind: Literal["fallback"] = "fallback"
    raw_text: str = ""


ParsedOutput = Annotated[
    Union[ParsedStructured, ParsedFallback],
    Field(discriminator="kind"),
]


class SynthesisResult(BaseModel):
    summary_text: str = ""
    sources_used: List[str] = Field(default_factory=list)
    matched_article_indices: List[int] = Field(default_factory=list)
    used_fallback: bool = False


class ValidationReport(BaseModel):
    valid: bool
    issues: List[str] = Field(default_factory=list)
    word_count: int = 0
    source_count: int = 0


class FeedSource(BaseModel):
    name: str
    url: str
    category: str = ""


class FetchResult(BaseModel):
    """Outcome of one feed. A dead feed is a result, not an exception."""
    source: str
    articles: List[RawArticle] = Field(default_factory=list)
    success: bool = True
    error: Optional[str] = None


class DigestState(BaseModel):
    """The 'Source of Truth' passing between steps and modules."""
    topic: str = ""
    articles: List[RawArticle] = Field(default_factory=list)
    fetch_results: List[FetchResult] = Field(default_factory=list)
    topic_matches: Dict[str, TopicMatch] = Field(default_factory=dict)

    evidence: List[EvidenceItem] = Field(default_factory=list)
    dropped: List[DroppedArticle] = Field(default_factory=list)

    prompt: Optional[StructuredPrompt] = None
    synthesis: Optional[SynthesisResult] = None
    validation: Optional[ValidationReport] = None
    persistable: bool = False

    error: Optional[str] = None
    generated_at: Optional[str] = None

    execution_log: List[Dict[str, Any]] = Field(default_factory=list)

    # ---  Track recursion depth for pretty printing ---
    depth: int = 0

    def to_json(self):
        return self.model_dump()
