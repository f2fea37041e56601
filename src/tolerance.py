import logging
from typing import Optional, assert_never

from formula import FormulaError, evaluate_custom_formula
from models import (
    AbsoluteTolerance,
    ColumnPairSettings,
    CustomTolerance,
    ExactMatch,
    RelativeTolerance,
    SimilarityTolerance,
    Tolerance,
    ToleranceResult,
)
from utils import format_number, normalize_for_comparison, parse_numeric, string_similarity

logger = logging.getLogger(__name__)


def values_equal(value1: Optional[str], value2: Optional[str], settings: ColumnPairSettings) -> bool:
    a = normalize_for_comparison(value1, settings.case_sensitive, settings.trim_values)
    b = normalize_for_comparison(value2, settings.case_sensitive, settings.trim_values)
    return a == b


def _quote(value: Optional[str]) -> str:
    return f'"{"" if value is None else value}"'


def evaluate_tolerance(primary_value: Optional[str],
                       comparison_value: Optional[str],
                       tolerance: Optional[Tolerance],
                       settings: ColumnPairSettings) -> ToleranceResult:
    """
    Decide whether two values agree under a tolerance policy.
    Never raises: inapplicable tolerances and formula errors come back as
    matches=False with the explanation in reason.
    """
    if tolerance is None:
        return ToleranceResult(False, "No tolerance specified")

    if isinstance(tolerance, ExactMatch):
        if values_equal(primary_value, comparison_value, settings):
            return ToleranceResult(True, f"Exact match: {_quote(primary_value)} equals {_quote(comparison_value)}")
        return ToleranceResult(False, f"Values differ: {_quote(primary_value)} vs {_quote(comparison_value)}")

    if isinstance(tolerance, AbsoluteTolerance):
        return _absolute(primary_value, comparison_value, tolerance)

    if isinstance(tolerance, RelativeTolerance):
        return _relative(primary_value, comparison_value, tolerance)

    if isinstance(tolerance, SimilarityTolerance):
        return _similarity(primary_value, comparison_value, tolerance, settings)

    if isinstance(tolerance, CustomTolerance):
        return _custom(primary_value, comparison_value, tolerance)

    assert_never(tolerance)


def is_within_tolerance(primary_value: Optional[str],
                        comparison_value: Optional[str],
                        tolerance: Optional[Tolerance],
                        settings: ColumnPairSettings) -> bool:
    return evaluate_tolerance(primary_value, comparison_value, tolerance, settings).matches


def _absolute(primary_value, comparison_value, tolerance: AbsoluteTolerance) -> ToleranceResult:
    a, b = parse_numeric(primary_value), parse_numeric(comparison_value)
    if not (a.is_numeric and b.is_numeric):
        return ToleranceResult(
            False,
            f"Absolute tolerance of {format_number(tolerance.value)} not applicable: "
            f"{_quote(primary_value)} vs {_quote(comparison_value)} are not both numeric",
        )
    diff = abs(a.num - b.num)
    expr = f"|{format_number(a.num)} - {format_number(b.num)}| = {format_number(diff)}"
    if diff <= tolerance.value:
        return ToleranceResult(True, f"Within absolute tolerance: {expr} <= {format_number(tolerance.value)}")
    return ToleranceResult(False, f"Outside absolute tolerance: {expr} > {format_number(tolerance.value)}")


def _relative(primary_value, comparison_value, tolerance: RelativeTolerance) -> ToleranceResult:
    a, b = parse_numeric(primary_value), parse_numeric(comparison_value)
    if not (a.is_numeric and b.is_numeric):
        return ToleranceResult(
            False,
            f"Relative tolerance of {format_number(tolerance.percentage)}% not applicable: "
            f"{_quote(primary_value)} vs {_quote(comparison_value)} are not both numeric",
        )
    diff = abs(a.num - b.num)
    average = (abs(a.num) + abs(b.num)) / 2
    allowed = tolerance.percentage / 100 * average
    detail = (
        f"|{format_number(a.num)} - {format_number(b.num)}| = {format_number(diff)}, "
        f"allowed {format_number(tolerance.percentage)}% of average {format_number(average)} "
        f"= {format_number(allowed)}"
    )
    if diff <= allowed:
        return ToleranceResult(True, f"Within relative tolerance: {detail}")
    return ToleranceResult(False, f"Outside relative tolerance: {detail}")


def _similarity(primary_value, comparison_value, tolerance: SimilarityTolerance,
                settings: ColumnPairSettings) -> ToleranceResult:
    a = normalize_for_comparison(primary_value, settings.case_sensitive, settings.trim_values)
    b = normalize_for_comparison(comparison_value, settings.case_sensitive, settings.trim_values)
    similarity = string_similarity(a, b)
    detail = (
        f"{_quote(a)} vs {_quote(b)} similarity {format_number(round(similarity * 100, 2))}%"
    )
    if similarity >= tolerance.percentage / 100:
        return ToleranceResult(True, f"Within similarity tolerance: {detail} >= {format_number(tolerance.percentage)}%")
    return ToleranceResult(False, f"Below similarity tolerance: {detail} < {format_number(tolerance.percentage)}%")


def _custom(primary_value, comparison_value, tolerance: CustomTolerance) -> ToleranceResult:
    try:
        outcome = evaluate_custom_formula(primary_value, comparison_value, tolerance.formula)
    except (FormulaError, ArithmeticError) as e:
        logger.warning("Custom formula %r failed: %s", tolerance.formula, e)
        return ToleranceResult(False, f"Custom formula error: {e} (formula: {tolerance.formula})")
    if outcome.result:
        return ToleranceResult(True, f"Matches custom formula: {outcome.evaluated_formula}")
    return ToleranceResult(False, f"Does not match custom formula: {outcome.evaluated_formula}")
