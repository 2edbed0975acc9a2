import hashlib

from newsdigest.core.models import RawArticle
from newsdigest.steps.normalize import (
    EMPTY_FINGERPRINT,
    content_fingerprint,
    extract_lead,
    normalize_article,
)


def test_extracts_first_two_sentences():
    text = "First sentence is here. Second one follows now! Third is ignored? Yes."
    assert extract_lead(text) == "First sentence is here. Second one follows now."


def test_strips_markup_and_collapses_whitespace():
    text = "<p>The <b>council</b>   voted\n on the bill.</p><p>It passed easily today.</p>"
    assert extract_lead(text) == "The council voted on the bill. It passed easily today."


def test_discards_short_fragments():
    text = "Hi. Ok!! Officials confirmed the figures on Monday. No."
    assert extract_lead(text, max_sentences=2) == "Officials confirmed the figures on Monday."


def test_empty_and_missing_body():
    assert extract_lead("") == ""
    assert extract_lead("...!?") == ""
    fragment = normalize_article(RawArticle(title="t", body=None))
    assert fragment.canonical_text == ""
    assert fragment.content_fingerprint == EMPTY_FINGERPRINT


def test_fingerprint_is_sha256_of_canonical_text():
    fragment = normalize_article(RawArticle(body="Markets rallied after the announcement."))
    expected = hashlib.sha256(b"Markets rallied after the announcement.").hexdigest()
    assert fragment.content_fingerprint == expected
    assert content_fingerprint(fragment.canonical_text) == expected


def test_contentless_articles_collide():
    a = normalize_article(RawArticle(title="One", body="<img src='x'>"))
    b = normalize_article(RawArticle(title="Two", body=""))
    assert a.content_fingerprint == b.content_fingerprint == EMPTY_FINGERPRINT


def test_article_is_left_untouched():
    article = RawArticle(title="t", body="<b>Bold</b> claims were made in the report.")
    fragment = normalize_article(article)
    assert fragment.article is article
    assert article.body.startswith("<b>")


def test_full_body_is_kept_beside_the_lead():
    fragment = normalize_article(RawArticle(
        body="<p>Polls closed at six.</p> Counting began overnight. Turnout reached 67 percent."
    ))
    assert fragment.canonical_text == "Polls closed at six. Counting began overnight."
    assert fragment.body == "Polls closed at six. Counting began overnight. Turnout reached 67 percent."
