"""Derives descriptive metadata (counts, keywords, summary, mime type) from file content."""

import re
from typing import Any, Dict, List, Optional

from common.constants import (
    DEFAULT_ENCODING,
    KEYWORD_MIN_LENGTH,
    MAX_KEYWORDS,
    MIME_TYPE_MARKDOWN,
    MIME_TYPE_PLAIN,
    SUMMARY_MAX_CHARS,
    SUMMARY_MAX_LINES,
)

_ALPHA_WORD = re.compile(r"[a-zA-Z]+")

# Unicode spaces and line terminators plus \ufeff; unlike \s, no \x1c-\x1f or \x85.
_WHITESPACE = re.compile(
    r"[\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+"
)


def split_words(content: str) -> List[str]:
    return [word for word in _WHITESPACE.split(content) if word]


def extract_keywords(words: List[str]) -> List[str]:
    """
    Distinct purely alphabetic words longer than KEYWORD_MIN_LENGTH, lower-cased,
    in order of first appearance.
    """
    keywords: List[str] = []
    seen = set()
    for word in words:
        if len(word) <= KEYWORD_MIN_LENGTH or not _ALPHA_WORD.fullmatch(word):
            continue
        lowered = word.lower()
        if lowered in seen:
            continue
        seen.add(lowered)
        keywords.append(lowered)
        if len(keywords) == MAX_KEYWORDS:
            break
    return keywords


def build_summary(lines: List[str]) -> Optional[str]:
    non_blank = [line.strip() for line in lines if line.strip()]
    summary = " ".join(non_blank[:SUMMARY_MAX_LINES])[:SUMMARY_MAX_CHARS]
    return summary or None


def detect_mime_type(file_name: str) -> str:
    return MIME_TYPE_MARKDOWN if file_name.endswith(".md") else MIME_TYPE_PLAIN


def enrich(
    content: str,
    file_name: str,
    current_version: Optional[int] = None,
    tags: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Compute metadata for a file.

    The result is the camelCase metadata document. It is not validated here;
    it is checked together with the rest of the record by document_to_file.

    Args:
        content: Full file text
        file_name: File name, used for the mime type
        current_version: Version number to stamp; 1 when not given
        tags: User-assigned tags to carry on the metadata

    Returns:
        Metadata document for the content
    """
    # A trailing newline counts as one more (empty) line.
    lines = content.split("\n")
    words = split_words(content)

    return {
        "encoding": DEFAULT_ENCODING,
        "mimeType": detect_mime_type(file_name),
        "tags": list(tags) if isinstance(tags, (list, tuple)) else tags,
        "wordCount": len(words),
        "lineCount": len(lines),
        "keywords": extract_keywords(words),
        "summary": build_summary(lines),
        "version": current_version or 1,
    }
