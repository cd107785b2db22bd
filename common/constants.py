"""Project-wide constants for metadata derivation, search and indexing."""

DEFAULT_ENCODING: str = "utf-8"

MIME_TYPE_MARKDOWN: str = "text/markdown"
MIME_TYPE_PLAIN: str = "text/plain"

KEYWORD_MIN_LENGTH: int = 4  # keywords must be strictly longer than this
MAX_KEYWORDS: int = 20

SUMMARY_MAX_LINES: int = 3
SUMMARY_MAX_CHARS: int = 200

SEARCH_RESULT_LIMIT: int = 50

# Relative text-search weights; higher ranks filename/keyword hits above raw content hits.
SEARCH_WEIGHTS: dict = {
    "name": 10,
    "metadata.keywords": 8,
    "metadata.tags": 5,
    "content": 1,
}

VERSION_CHANGE_DESCRIPTION: str = "updated"
