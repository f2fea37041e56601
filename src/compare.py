from typing import NamedTuple, Optional, Union

from models import ColumnPair, ComparisonResult, MatchStatus
from tolerance import evaluate_tolerance, values_equal
from utils import format_number, is_blank, normalize_for_comparison, parse_numeric, string_similarity

PARTIAL_STRING_SIMILARITY = 0.5
PARTIAL_NUMERIC_PERCENT = 10


class StatusDecision(NamedTuple):
    status: MatchStatus
    reason: str


def calculate_difference(value1: Optional[str], value2: Optional[str]) -> Union[float, str]:
    """Numeric delta (primary - comparison) when both parse, otherwise a label."""
    if is_blank(value1) and is_blank(value2):
        return 0
    if is_blank(value1):
        return "Missing in primary"
    if is_blank(value2):
        return "Missing in comparison"

    a, b = parse_numeric(value1), parse_numeric(value2)
    if a.is_numeric and b.is_numeric:
        return a.num - b.num

    if value1 == value2:
        return "No difference"
    return "Text differs"


def decide_numeric_status(a: float, b: float) -> StatusDecision:
    diff = abs(a - b)
    average = (abs(a) + abs(b)) / 2
    if average == 0:
        pct = 0.0 if diff == 0 else float("inf")
    else:
        pct = diff / average * 100

    detail = f"numeric difference {format_number(diff)} ({format_number(round(pct, 2))}% of average)"
    if pct <= PARTIAL_NUMERIC_PERCENT:
        return StatusDecision(MatchStatus.PARTIAL_MATCH, f"Partial match: {detail}")
    return StatusDecision(MatchStatus.NO_MATCH, f"No match: {detail}")


def decide_string_status(a: str, b: str) -> StatusDecision:
    similarity = string_similarity(a, b)
    detail = f"text similarity {format_number(round(similarity * 100, 2))}%"
    if similarity >= PARTIAL_STRING_SIMILARITY:
        return StatusDecision(MatchStatus.PARTIAL_MATCH, f"Partial match: {detail}")
    return StatusDecision(MatchStatus.NO_MATCH, f"No match: {detail}")


def compare_values(primary_value: Optional[str],
                   comparison_value: Optional[str],
                   pair: ColumnPair) -> ComparisonResult:
    difference = calculate_difference(primary_value, comparison_value)

    def result(match: bool, status: MatchStatus, reason: str) -> ComparisonResult:
        return ComparisonResult(
            primary_value=primary_value,
            comparison_value=comparison_value,
            match=match,
            difference=difference,
            reason=reason,
            status=status,
            tolerance=pair.tolerance,
        )

    primary_blank, comparison_blank = is_blank(primary_value), is_blank(comparison_value)
    if primary_blank and comparison_blank:
        # "" on both sides agrees. A key absent from either row does not,
        # so a mis-typed column name never scores as a match.
        both_present = primary_value is not None and comparison_value is not None
        reason = "Both values are empty" if both_present else "Value missing in both rows"
        return result(both_present, MatchStatus.MISSING, reason)
    if primary_blank:
        return result(False, MatchStatus.MISSING, "Value missing in primary")
    if comparison_blank:
        return result(False, MatchStatus.MISSING, "Value missing in comparison")

    if values_equal(primary_value, comparison_value, pair.settings):
        return result(True, MatchStatus.EXACT_MATCH, "Exact match")

    tolerance_result = evaluate_tolerance(primary_value, comparison_value, pair.tolerance, pair.settings)
    if tolerance_result.matches:
        return result(True, MatchStatus.WITHIN_TOLERANCE, tolerance_result.reason)

    a, b = parse_numeric(primary_value), parse_numeric(comparison_value)
    if a.is_numeric and b.is_numeric:
        decision = decide_numeric_status(a.num, b.num)
    else:
        settings = pair.settings
        decision = decide_string_status(
            normalize_for_comparison(primary_value, settings.case_sensitive, settings.trim_values),
            normalize_for_comparison(comparison_value, settings.case_sensitive, settings.trim_values),
        )
    return result(False, decision.status, f"{decision.reason}; {tolerance_result.reason}")

