import re
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from models import ParsedFileData
from utils import is_blank, parse_numeric

_US_DATE_RE = re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b")
_CURRENCY_RE = re.compile(r"^\s*-?\$?-?[\d,]+(\.\d+)?\s*$")


@dataclass(frozen=True)
class DataIssue:
    type: str          # duplicate_headers | empty_headers | missing_data | inconsistent_format
    severity: str      # error | warning | info
    message: str
    affected_rows: List[int] = field(default_factory=list)
    affected_columns: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DataValidationResult:
    is_valid: bool
    confidence: int
    issues: List[DataIssue]
    suggestions: List[str]
    cleaned_data: Optional[ParsedFileData] = None


def _validate_headers(columns: List[str]) -> List[DataIssue]:
    issues = []
    dupes = sorted(name for name, n in Counter(columns).items() if n > 1)
    if dupes:
        issues.append(DataIssue("duplicate_headers", "error",
                                f"Duplicate column headers: {', '.join(dupes)}", affected_columns=dupes))
    empty = [c for c in columns if c.strip() == ""]
    if empty:
        issues.append(DataIssue("empty_headers", "warning", f"{len(empty)} column(s) have no header"))
    return issues


def _validate_consistency(data: ParsedFileData) -> List[DataIssue]:
    issues = []
    total = len(data.rows)
    if total == 0:
        return issues
    for column in data.column_names:
        values = [row.get(column) for row in data.rows]
        blank_rows = [i for i, v in enumerate(values) if is_blank(v)]
        if len(blank_rows) > total / 2:
            issues.append(DataIssue(
                "missing_data", "warning",
                f"Column '{column}' is blank in {len(blank_rows)} of {total} rows",
                affected_rows=blank_rows, affected_columns=[column],
            ))
        present = [v for v in values if not is_blank(v)]
        numeric = sum(1 for v in present if parse_numeric(v).is_numeric)
        if 0 < numeric < len(present):
            issues.append(DataIssue(
                "inconsistent_format", "info",
                f"Column '{column}' mixes numeric ({numeric}) and text ({len(present) - numeric}) values",
                affected_columns=[column],
            ))
    return issues


def standardize_value(value: str) -> str:
    """M/D/YYYY -> YYYY-MM-DD, and '$1,234.50' -> '1234.50'."""
    value = _US_DATE_RE.sub(lambda m: f"{m.group(3)}-{int(m.group(1)):02d}-{int(m.group(2)):02d}", value)
    if _CURRENCY_RE.match(value) and ("$" in value or "," in value):
        value = value.replace("$", "").replace(",", "").strip()
    return value


def _clean_rows(rows: List[Dict[str, str]], trim: bool, drop_empty: bool, fmt: bool) -> List[Dict[str, str]]:
    cleaned = []
    for row in rows:
        new = {}
        for k, v in row.items():
            v = "" if v is None else str(v)
            if trim:
                v = v.strip()
            if fmt:
                v = standardize_value(v)
            new[k] = v
        if drop_empty and all(is_blank(v) for v in new.values()):
            continue
        cleaned.append(new)
    return cleaned


def validate_and_clean(data: ParsedFileData,
                       trim_whitespace: bool = True,
                       remove_empty_rows: bool = True,
                       standardize_formats: bool = True) -> DataValidationResult:
    issues = _validate_headers(data.column_names) + _validate_consistency(data)

    suggestions = []
    if any(i.type == "missing_data" for i in issues):
        suggestions.append("Review and fill in missing data fields")
    if any(i.type == "inconsistent_format" for i in issues):
        suggestions.append("Check data formats for consistency (dates, numbers, etc.)")
    if any(i.type == "duplicate_headers" for i in issues):
        suggestions.append("Rename duplicate columns so each header is unique")

    errors = sum(1 for i in issues if i.severity == "error")
    warnings = sum(1 for i in issues if i.severity == "warning")
    confidence = 100
    if errors:
        confidence = 40
    elif warnings > 2:
        confidence = 60
    elif warnings:
        confidence = 80

    cleaned = replace(data, rows=_clean_rows(data.rows, trim_whitespace, remove_empty_rows, standardize_formats))
    return DataValidationResult(
        is_valid=errors == 0,
        confidence=confidence,
        issues=issues,
        suggestions=suggestions,
        cleaned_data=cleaned,
    )


def data_quality_score(result: DataValidationResult) -> int:
    errors = sum(1 for i in result.issues if i.severity == "error")
    warnings = sum(1 for i in result.issues if i.severity == "warning")
    return max(0, min(100, result.confidence - errors * 20 - warnings * 5))
