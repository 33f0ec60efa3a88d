"""article_scout.parser.text_stats: keyword, language and difficulty heuristics.

All functions are pure and deterministic; they work for English and
Vietnamese text.
"""
from __future__ import annotations

import re
import string
import unicodedata
from collections import Counter
from typing import FrozenSet, List

from article_scout.crawler.models import Difficulty

VIETNAMESE_CHARS = (
    "àáạảãâầấậẩẫăằắặẳẵèéẹẻẽêềếệểễìíịỉĩ"
    "òóọỏõôồốộổỗơờớợởỡùúụủũưừứựửữỳýỵỷỹđ"
)

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        # English
        "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
        "by", "from", "up", "about", "into", "through", "during", "before",
        "after", "above", "below", "is", "are", "was", "were", "be", "been",
        "being", "have", "has", "had", "do", "does", "did", "will", "would",
        "could", "should", "may", "might", "must", "can", "shall", "this",
        "that", "these", "those", "i", "me", "my", "myself", "we", "our",
        "ours", "ourselves", "you", "your", "yours", "yourself", "yourselves",
        "he", "him", "his", "himself", "she", "her", "hers", "herself", "it",
        "its", "itself", "they", "them", "their", "theirs", "themselves",
        # Vietnamese
        "là", "của", "và", "có", "trong", "với", "để", "cho", "về", "từ",
        "khi", "được", "sẽ", "đã", "này", "đó", "những", "các", "một", "hai",
        "ba", "bốn", "năm", "sáu", "bảy", "tám", "chín", "mười",
    }
)

MAX_KEYWORDS = 15

_NON_WORD_RE = re.compile(rf"[^a-z0-9_\s{VIETNAMESE_CHARS}]")
_VI_CHAR_RE = re.compile(rf"[{VIETNAMESE_CHARS}]", re.IGNORECASE)
_VI_WORD_RE = re.compile(
    r"\b(của|và|có|trong|với|để|cho|về|từ|khi|được|sẽ|đã|này|đó|những|các)\b",
    re.IGNORECASE,
)
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def _nfc(text: str) -> str:
    # decomposed diacritics would otherwise be stripped as stray combining marks
    return unicodedata.normalize("NFC", text)


def extract_keywords(content: str, title: str = "", limit: int = MAX_KEYWORDS) -> List[str]:
    """Most frequent meaningful words of ``title + content``.

    Ties keep the order in which words first appear.
    """
    text = _NON_WORD_RE.sub("", _nfc(f"{title} {content}").lower())
    words = [w for w in text.split() if len(w) > 2 and w not in STOP_WORDS]
    return [word for word, _ in Counter(words).most_common(limit)]


def detect_language(content: str) -> str:
    """``"vi"`` when the text looks Vietnamese, otherwise ``"en"``."""
    text = _nfc(content)
    if len(_VI_CHAR_RE.findall(text)) > 10 or len(_VI_WORD_RE.findall(text)) > 5:
        return "vi"
    return "en"


def estimate_difficulty(content: str) -> Difficulty:
    """Readability bucket from average word and sentence length.

    hard: word length > 6 or sentence length > 25; medium: > 5 or > 15;
    otherwise easy. Thresholds are strict, so exactly 6.0 is medium.
    Word length ignores surrounding punctuation.
    """
    words = [w.strip(string.punctuation) for w in content.split()]
    words = [w for w in words if w]
    if not words:
        return "easy"
    avg_word_length = sum(len(w) for w in words) / len(words)
    sentences = [s for s in _SENTENCE_SPLIT_RE.split(content) if s.strip()]
    avg_sentence_length = len(words) / max(1, len(sentences))

    if avg_word_length > 6 or avg_sentence_length > 25:
        return "hard"
    if avg_word_length > 5 or avg_sentence_length > 15:
        return "medium"
    return "easy"


def count_words(content: str) -> int:
    return len(content.split())
