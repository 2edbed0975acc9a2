# Ten reports on the 2024 general elections. Article 7 repeats the lead of
# article 1 word for word under a different headline.
SAMPLE_ARTICLES = [
    {
        "title": "Elections 2024 results announced",
        "body": "The Election Commission announced final results for the 2024 general elections, "
                "with voter turnout reaching a record 67% across all states.",
        "source_name": "The Hindu",
        "url": "https://www.thehindu.com/news/national/elections-2024-results",
        "publish_time": "2024-06-04T10:00:00Z",
    },
    {
        "title": "Counting of votes concludes",
        "body": "Counting of votes concluded across all constituencies early this morning, "
                "with the ruling party securing a comfortable majority in the Lok Sabha.",
        "source_name": "Times of India",
        "url": "https://timesofindia.indiatimes.com/india/counting-concludes",
        "publish_time": "2024-06-04T11:30:00Z",
    },
    {
        "title": "Exit polls predictions",
        "body": "Exit polls had predicted a close contest in several states, but the final results "
                "showed a decisive victory for the incumbent government.",
        "source_name": "Indian Express",
        "url": "https://indianexpress.com/article/india/exit-polls-predictions",
        "publish_time": "2024-06-04T12:00:00Z",
    },
    {
        "title": "Opposition raises EVM concerns",
        "body": "Opposition parties have raised concerns about Electronic Voting Machine reliability "
                "and demanded a recount in certain constituencies.",
        "source_name": "The Hindu",
        "url": "https://www.thehindu.com/news/national/opposition-evm-concerns",
        "publish_time": "2024-06-04T13:00:00Z",
    },
    {
        "title": "New government to take oath",
        "body": "The new government is expected to take oath within the next week, with senior "
                "ministers being finalized by the party leadership.",
        "source_name": "Times of India",
        "url": "https://timesofindia.indiatimes.com/india/government-oath",
        "publish_time": "2024-06-04T14:00:00Z",
    },
    {
        "title": "International observers certify election",
        "body": "International observers have certified the election as free and fair, praising "
                "the peaceful conduct of polling across the country.",
        "source_name": "Indian Express",
        "url": "https://indianexpress.com/article/india/observers-certify-election",
        "publish_time": "2024-06-04T15:00:00Z",
    },
    {
        "title": "Voter turnout record high",
        "body": "The Election Commission announced final results for the 2024 general elections, "
                "with voter turnout reaching a record 67% across all states.",
        "source_name": "Times of India",
        "url": "https://timesofindia.indiatimes.com/india/voter-turnout-record",
        "publish_time": "2024-06-04T10:30:00Z",
    },
    {
        "title": "PM congratulates voters",
        "body": "Prime Minister thanked citizens for participating in the democratic process and "
                "exercising their franchise in record numbers.",
        "source_name": "The Hindu",
        "url": "https://www.thehindu.com/news/national/pm-congratulates-voters",
        "publish_time": "2024-06-04T16:00:00Z",
    },
    {
        "title": "Stock market reacts",
        "body": "Stock markets opened positively as election results aligned with market "
                "expectations, with major indices gaining over 2%.",
        "source_name": "Times of India",
        "url": "https://timesofindia.indiatimes.com/business/stock-market-reacts",
        "publish_time": "2024-06-04T16:30:00Z",
    },
    {
        "title": "State-wise breakdown",
        "body": "Detailed state-wise results show the ruling party retained key states while "
                "opposition made inroads in some regions.",
        "source_name": "Indian Express",
        "url": "https://indianexpress.com/article/india/state-wise-breakdown",
        "publish_time": "2024-06-04T17:00:00Z",
    },
]
