from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable

from stay_intake.core.config import settings
from stay_intake.modules.extraction.records import PropertyDefaults, PropertyMatch

_NUMERAL_RE = re.compile(r"\b(iv|iii|ii|i|1|2|3|4)\b")
_ARABIC_TO_ROMAN = {"1": "i", "2": "ii", "3": "iii", "4": "iv"}


def normalize_property_name(name: str) -> str:
    s = (name or "").lower().replace("\n", " ")
    s = unicodedata.normalize("NFD", s)
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = re.sub(r"[^a-z0-9\s]", "", s)
    return re.sub(r"\s+", " ", s).strip()


def score_property_name(search: str, candidate: str) -> float:
    """Similarity in [0, 100] between an extracted name and a catalog name."""
    a = normalize_property_name(search)
    b = normalize_property_name(candidate)
    if not a or not b:
        return 0.0
    if a == b:
        return 100.0

    for base in settings.numbered_property_bases:
        base_norm = normalize_property_name(base)
        if base_norm and base_norm in a and base_norm in b:
            num_a = _property_numeral(a)
            num_b = _property_numeral(b)
            if num_a and num_a == num_b:
                return 95.0
            if not num_a or not num_b:
                return 80.0
            # Different numerals: only the token overlap below may apply.
            return _token_overlap_score(a, b)

    if a in b or b in a:
        shorter, longer = sorted((len(a), len(b)))
        return 70.0 * shorter / longer

    return _token_overlap_score(a, b)


def match_property(name: str, catalog: Iterable[PropertyDefaults]) -> PropertyMatch | None:
    """Best catalog entry for `name`, or None when nothing clears the threshold."""
    if not (name or "").strip():
        return None
    properties = list(catalog)
    if not properties:
        return None

    best: PropertyDefaults | None = None
    best_score = 0.0
    for prop in properties:
        score = score_property_name(name, prop.name)
        if score > best_score:
            best, best_score = prop, score

    threshold = float(settings.property_match_threshold)
    floor = float(settings.property_match_flexible_floor)
    strategy = "score"
    if floor < best_score <= threshold:
        flexible = _flexible_match(name, properties, min_score=best_score)
        if flexible is not None:
            best, best_score = flexible
            threshold = floor
            strategy = "flexible"

    if best is None or best_score <= threshold:
        return None
    return PropertyMatch(property=best, score=best_score, strategy=strategy)


def _flexible_match(
    name: str, properties: list[PropertyDefaults], *, min_score: float
) -> tuple[PropertyDefaults, float] | None:
    """Highest word-hit percentage above the ratio that beats `min_score`."""
    search_words = [w for w in normalize_property_name(name).split() if len(w) > 2]
    if not search_words:
        return None
    ratio = float(settings.property_match_word_ratio)
    best: tuple[PropertyDefaults, float] | None = None
    for prop in properties:
        prop_words = normalize_property_name(prop.name).split()
        hits = sum(
            1 for sw in search_words if any(sw in pw or pw in sw for pw in prop_words)
        )
        score = 100.0 * hits / len(search_words)
        if score > ratio * 100 and score > (best[1] if best else min_score):
            best = (prop, score)
    return best


def _property_numeral(normalized: str) -> str | None:
    m = _NUMERAL_RE.search(normalized)
    if not m:
        return None
    return _ARABIC_TO_ROMAN.get(m.group(1), m.group(1))


def _token_overlap_score(a: str, b: str) -> float:
    words_a = a.split()
    words_b = b.split()
    common = len(set(words_a) & set(words_b))
    if not common:
        return 0.0
    return 40.0 * common / max(len(words_a), len(words_b))
