from newsdigest.core.models import DigestState, RawArticle
from newsdigest.steps.topic_filter import TopicFilterStep, filter_articles, match_topic, topic_tokens


def test_blank_topic_keeps_everything(sample_articles):
    assert filter_articles(sample_articles, "") == sample_articles
    assert filter_articles(sample_articles, "   \t") == sample_articles


def test_short_words_are_ignored(sample_articles):
    assert topic_tokens("is to of") == []
    assert filter_articles(sample_articles, "is to") == sample_articles
    assert topic_tokens("  ISRO launches  ") == ["isro", "launches"]


def test_substring_match_is_case_insensitive():
    article = RawArticle(title="ELECTION VOTER TURNOUT HITS RECORD HIGH", body="Voter turnout...")
    assert match_topic(article, topic_tokens("election")).matched
    # "election" is a substring of "elections"
    article = RawArticle(title="Elections 2024 results", body="Results declared")
    assert match_topic(article, topic_tokens("election")).matched


def test_substring_match_keeps_false_positives():
    article = RawArticle(title="Rocketry club meets", body="Students built models.")
    assert match_topic(article, topic_tokens("rocket")).matched


def test_non_matching_article_is_dropped():
    articles = [
        RawArticle(title="ISRO launches satellite", body="Indian Space Research Organization launched..."),
        RawArticle(title="Cricket World Cup", body="India wins"),
    ]
    assert filter_articles(articles, "football") == []
    assert filter_articles(articles, "rocket") == []
    assert filter_articles(articles, "cricket football") == [articles[1]]


def test_match_reports_location():
    tokens = topic_tokens("budget")
    in_title = match_topic(RawArticle(title="Union Budget 2024", body="Finance Minister presented"), tokens)
    in_body = match_topic(RawArticle(title="Parliament session", body="The budget was tabled"), tokens)

    assert in_title.in_title and not in_title.in_body
    assert in_body.in_body and not in_body.in_title
    assert in_body.tokens == ["budget"]


def test_step_records_matches_and_flags_empty_result(sample_articles):
    step = TopicFilterStep({})
    state = step.execute(DigestState(topic="elections", articles=sample_articles))
    assert 0 < len(state.articles) < len(sample_articles)
    assert set(state.topic_matches) == {a.url for a in state.articles}
    assert state.error is None

    state = step.execute(DigestState(topic="football", articles=sample_articles))
    assert state.articles == []
    assert "No relevant articles found" in state.error
