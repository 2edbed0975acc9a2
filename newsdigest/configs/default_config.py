import os

NEWS_SOURCES = [
    {
        "name": "The Hindu",
        "url": "https://www.thehindu.com/news/national/?service=rss",
        "category": "national",
    },
    {
        "name": "Times of India",
        "url": "https://timesofindia.indiatimes.com/rssfeeds/296589292.cms",
        "category": "national",
    },
    {
        "name": "Indian Express",
        "url": "https://indianexpress.com/section/india/feed/",
        "category": "national",
    },
]

LLM_SETTINGS = {
    "base_url": os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1"),
    "api_key": os.environ.get("OPENAI_API_KEY"),
    "timeout": 60,
}

# Shared by the live and offline configs
DIGEST_STEPS = [
    {"type": "topic_filter", "settings": {}},
    {
        "type": "reduce_evidence",
        "settings": {
            "max_items": 20,
            "similarity_threshold": 0.8,
            "max_sentences": 2,
            "ensure_source_diversity": True,
        },
    },
    {
        "type": "synthesize",
        "settings": {
            "model": os.environ.get("NEWSDIGEST_MODEL", "gpt-4o-mini"),
            "temperature": 0.7,
            "max_tokens": 1024,
            "min_words": 200,
            "max_words": 300,
        },
    },
    {"type": "validate_quality", "settings": {"min_persist_chars": 50}},
]

DIGEST_CONFIG = {
    "name": "News_Digest",
    "debug": False,
    "llm_settings": LLM_SETTINGS,
    "steps": [
        {
            "type": "fetch_feeds",
            "settings": {"sources": NEWS_SOURCES, "timeout": 10, "max_workers": 4},
        },
        *DIGEST_STEPS,
    ],
}

OFFLINE_DIGEST_CONFIG = {
    "name": "News_Digest_Offline",
    "debug": False,
    "llm_settings": LLM_SETTINGS,
    "steps": [
        {"type": "mock_articles", "settings": {}},
        *DIGEST_STEPS,
    ],
}
