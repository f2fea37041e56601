import math
import re
from typing import NamedTuple, Optional

from rapidfuzz.distance import Levenshtein

_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


class NumericValue(NamedTuple):
    num: float
    is_numeric: bool


def is_blank(value: Optional[str]) -> bool:
    return value is None or str(value).strip() == ""


def normalize_for_comparison(value: Optional[str], case_sensitive: bool, trim_values: bool) -> str:
    if value is None:
        return ""
    s = str(value)
    if trim_values:
        s = s.strip()
    if not case_sensitive:
        s = s.lower()
    return s


def parse_numeric(value: Optional[str]) -> NumericValue:
    if value is None:
        return NumericValue(math.nan, False)
    s = str(value).strip()
    if not _NUMBER_RE.match(s):
        return NumericValue(math.nan, False)
    num = float(s)
    if not math.isfinite(num):
        # "1e999" overflows to inf; treat it as text
        return NumericValue(math.nan, False)
    return NumericValue(num, True)


def levenshtein_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def string_similarity(a: str, b: str) -> float:
    longer = max(len(a), len(b))
    if longer == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longer


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def format_number(x: float) -> str:
    if math.isfinite(x) and x == int(x):
        return str(int(x))
    return format(x, ".10g")

