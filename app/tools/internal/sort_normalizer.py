"""Map free-text sort requests onto the sort keys the listings API accepts.

The model is allowed to pass the user's own phrasing ("cheapest",
"best seling", "Top rated"). Only one of ``SORT_OPTIONS`` is ever returned.
A phrase is compared word by word, so every word has to be a close spelling
of the label's word in the same place; "least popular" or "newest first" match
nothing. Anything below the threshold, or equally close to two different keys,
is dropped so the search runs unsorted.
"""

import logging
from typing import Dict, List, Optional, Tuple, get_args

from rapidfuzz import fuzz, process, utils

from app.config import SORT_AMBIGUITY_MARGIN, SORT_MATCH_THRESHOLD
from app.tools.internal.query_builder import SortKey

logger = logging.getLogger(__name__)

SORT_OPTIONS: Tuple[str, ...] = get_args(SortKey)

# Storefront labels each sort key is shown under, matched alongside the key itself.
SORT_LABELS: Dict[str, Tuple[str, ...]] = {
    "price-low-to-high": ("price: low to high", "lowest price", "cheapest", "budget friendly"),
    "price-high-to-low": ("price: high to low", "highest price", "most expensive"),
    "best-selling": ("best selling", "bestseller", "most popular", "most booked"),
    "top-reviewed": ("top reviewed", "top rated", "highest rated", "best reviews"),
}


def _build_vocabulary() -> Tuple[List[str], List[str]]:
    labels: List[str] = []
    keys: List[str] = []
    for key in SORT_OPTIONS:
        for label in (key, *SORT_LABELS[key]):
            labels.append(utils.default_process(label))
            keys.append(key)
    return labels, keys


_LABELS, _LABEL_KEYS = _build_vocabulary()
_CANONICAL = {utils.default_process(key): key for key in SORT_OPTIONS}


def word_by_word_ratio(query: str, label: str, **kwargs) -> float:
    """Lowest ``fuzz.ratio`` between words in the same position; 0 if the word counts differ."""
    query_words, label_words = query.split(), label.split()
    if not query_words or len(query_words) != len(label_words):
        return 0
    return min(fuzz.ratio(q, w) for q, w in zip(query_words, label_words))


def normalize_sort(raw: Optional[str], threshold: float = SORT_MATCH_THRESHOLD) -> Optional[str]:
    """Return the sort key ``raw`` most plausibly refers to, or ``None``.

    ``threshold`` is a rapidfuzz score (0-100). Never raises.
    """
    if not raw or not isinstance(raw, str):
        return None

    query = utils.default_process(raw)
    if not query:
        return None
    if query in _CANONICAL:
        return _CANONICAL[query]

    matches = process.extract(
        query,
        _LABELS,
        scorer=word_by_word_ratio,
        processor=None,
        score_cutoff=threshold,
        limit=None,
    )
    if not matches:
        logger.info("No sort order matched %r (threshold %.0f)", raw, threshold)
        return None

    label, score, index = max(matches, key=lambda m: m[1])
    key = _LABEL_KEYS[index]
    rival = max((m for m in matches if _LABEL_KEYS[m[2]] != key), key=lambda m: m[1], default=None)
    if rival is not None and score - rival[1] < SORT_AMBIGUITY_MARGIN:
        logger.info(
            "Sort %r is ambiguous between %r (%.1f) and %r (%.1f)",
            raw, key, score, _LABEL_KEYS[rival[2]], rival[1],
        )
        return None

    logger.info("Sort %r matched %r via %r (score %.1f)", raw, key, label, score)
    return key
