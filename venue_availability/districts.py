"""Fuzzy matching of upstream district names onto the canonical Hong Kong districts."""

import re
from functools import lru_cache
from typing import List, Optional, Tuple

from venue_availability import config
from venue_availability.models import CanonicalDistrict

AREA_ORDER: Tuple[str, ...] = ("HKI", "KLN", "NT")
UNKNOWN_CODE = "UNKNOWN"

DISTRICTS: Tuple[CanonicalDistrict, ...] = (
    CanonicalDistrict(code="CW", area_code="HKI", name_en="Central and Western", name_zh="中西區"),
    CanonicalDistrict(code="E", area_code="HKI", name_en="Eastern", name_zh="東區"),
    CanonicalDistrict(code="S", area_code="HKI", name_en="Southern", name_zh="南區"),
    CanonicalDistrict(code="WC", area_code="HKI", name_en="Wan Chai", name_zh="灣仔區"),
    CanonicalDistrict(code="SSP", area_code="KLN", name_en="Sham Shui Po", name_zh="深水埗區"),
    CanonicalDistrict(code="KC", area_code="KLN", name_en="Kowloon City", name_zh="九龍城區"),
    CanonicalDistrict(code="KT", area_code="KLN", name_en="Kwun Tong", name_zh="觀塘區"),
    CanonicalDistrict(code="WTS", area_code="KLN", name_en="Wong Tai Sin", name_zh="黃大仙區"),
    CanonicalDistrict(code="YTM", area_code="KLN", name_en="Yau Tsim Mong", name_zh="油尖旺區"),
    CanonicalDistrict(code="I", area_code="NT", name_en="Islands", name_zh="離島區"),
    CanonicalDistrict(code="KTG", area_code="NT", name_en="Kwai Tsing", name_zh="葵青區"),
    CanonicalDistrict(code="N", area_code="NT", name_en="North", name_zh="北區"),
    CanonicalDistrict(code="SK", area_code="NT", name_en="Sai Kung", name_zh="西貢區"),
    CanonicalDistrict(code="ST", area_code="NT", name_en="Sha Tin", name_zh="沙田區"),
    CanonicalDistrict(code="TP", area_code="NT", name_en="Tai Po", name_zh="大埔區"),
    CanonicalDistrict(code="TW", area_code="NT", name_en="Tsuen Wan", name_zh="荃灣區"),
    CanonicalDistrict(code="TM", area_code="NT", name_en="Tuen Mun", name_zh="屯門區"),
    CanonicalDistrict(code="YL", area_code="NT", name_en="Yuen Long", name_zh="元朗區"),
)

_BY_ENGLISH_NAME = {d.name_en: d for d in DISTRICTS}
_BY_CODE = {d.code: d for d in DISTRICTS}

_SUFFIX_RE = re.compile(r"\s+(district|area|region)$", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def normalize_district_name(name: str) -> str:
    name = name.lower().strip()
    name = _SUFFIX_RE.sub("", name)
    name = _WHITESPACE_RE.sub(" ", name)
    return _PUNCTUATION_RE.sub("", name)


def _key_words(normalized: str) -> List[str]:
    return [word for word in normalized.split(" ") if len(word) > 2]


def similarity_score(first: str, second: str) -> float:
    """Scores two district names in [0, 1]."""
    norm1 = normalize_district_name(first)
    norm2 = normalize_district_name(second)
    if not norm1 or not norm2:
        return 0.0

    if norm1 == norm2:
        return 1.0

    if norm1 in norm2 or norm2 in norm1:
        return 0.9

    words1 = _key_words(norm1)
    words2 = _key_words(norm2)
    if not words1 or not words2:
        return 0.0

    matching = [w1 for w1 in words1 if any(w1 in w2 or w2 in w1 for w2 in words2)]
    ratio = len(matching) / max(len(words1), len(words2))

    if ratio == 1.0:
        return 0.8
    if ratio > 0.5:
        # Scale between 0.6 and 0.8
        return 0.6 + (ratio - 0.5) * 0.4
    return ratio * 0.5


@lru_cache(maxsize=512)
def _best_match(raw_name: str, min_confidence: float) -> Optional[CanonicalDistrict]:
    exact = _BY_ENGLISH_NAME.get(raw_name.strip())
    if exact is not None:
        return exact

    best: Optional[CanonicalDistrict] = None
    best_score = 0.0
    for district in DISTRICTS:
        for candidate in (district.name_en, district.name_zh):
            score = similarity_score(raw_name, candidate)
            if score > best_score and score >= min_confidence:
                best_score = score
                best = district
    return best


def match_district(raw_name: Optional[str], min_confidence: Optional[float] = None) -> Optional[CanonicalDistrict]:
    """Returns the best canonical district for `raw_name`, or None."""
    if not isinstance(raw_name, str) or not raw_name.strip():
        return None
    if min_confidence is None:
        min_confidence = config.DISTRICT_MIN_CONFIDENCE
    return _best_match(raw_name, min_confidence)


def district_code_for(raw_name: Optional[str], min_confidence: Optional[float] = None) -> str:
    district = match_district(raw_name, min_confidence)
    return district.code if district else UNKNOWN_CODE


def area_code_for(raw_name: Optional[str], min_confidence: Optional[float] = None) -> str:
    district = match_district(raw_name, min_confidence)
    return district.area_code if district else UNKNOWN_CODE


def district_by_code(code: str) -> Optional[CanonicalDistrict]:
    return _BY_CODE.get(code)


class DistrictMatcher:
    """Matcher bound to a fixed confidence threshold."""

    def __init__(self, min_confidence: Optional[float] = None):
        self.min_confidence = config.DISTRICT_MIN_CONFIDENCE if min_confidence is None else min_confidence

    def match(self, raw_name: Optional[str]) -> Optional[CanonicalDistrict]:
        return match_district(raw_name, self.min_confidence)

    def district_code(self, raw_name: Optional[str]) -> str:
        return district_code_for(raw_name, self.min_confidence)

    def area_code(self, raw_name: Optional[str]) -> str:
        return area_code_for(raw_name, self.min_confidence)
