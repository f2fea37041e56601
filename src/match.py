import logging
from collections import Counter
from typing import Dict, List, Tuple

from compare import compare_values
from models import (
    ColumnPair,
    ComparisonResult,
    ParsedFileData,
    ReconciliationConfig,
    ReconciliationDiagnostics,
    ReconciliationResult,
    RowMatchResult,
)
from report import build_summary
from utils import normalize_for_comparison, round_half_up

logger = logging.getLogger(__name__)


class ReconciliationConfigError(ValueError):
    pass


def index_rows(rows: List[Dict[str, str]],
               id_column: str,
               id_pair: ColumnPair) -> Tuple[Dict[str, Dict[str, str]], int, Dict[str, int]]:
    """
    Map normalized identifier -> row.
    Rows with a blank identifier are skipped. A repeated identifier keeps its
    first position but the later row replaces the earlier one.
    Returns (index, skipped_count, duplicate_counts).
    """
    index: Dict[str, Dict[str, str]] = {}
    counts: Counter = Counter()
    skipped = 0
    settings = id_pair.settings
    for row in rows:
        key = normalize_for_comparison(row.get(id_column), settings.case_sensitive, settings.trim_values)
        if not key.strip():
            skipped += 1
            continue
        counts[key] += 1
        index[key] = row
    duplicates = {k: n for k, n in counts.items() if n > 1}
    return index, skipped, duplicates


def compare_rows(primary_row: Dict[str, str],
                 comparison_row: Dict[str, str],
                 pairs: List[ColumnPair]) -> Tuple[Dict[str, ComparisonResult], int]:
    results: Dict[str, ComparisonResult] = {}
    match_count = 0
    for pair in pairs:
        if not pair.is_complete:
            continue
        comparison = compare_values(
            primary_row.get(pair.primary_column),
            comparison_row.get(pair.comparison_column),
            pair,
        )
        if comparison.match:
            match_count += 1
        # pairs sharing a primary column keep only the last result here
        results[pair.primary_column] = comparison
    if not pairs:
        return results, 100
    return results, round_half_up(match_count / len(pairs) * 100)


def reconcile(primary_data: ParsedFileData,
              comparison_data: ParsedFileData,
              config: ReconciliationConfig) -> ReconciliationResult:
    if config.reverse_reconciliation:
        primary_data, comparison_data = comparison_data, primary_data
        config = config.flipped()

    id_pair = config.primary_id_pair
    if not id_pair.primary_column or not id_pair.comparison_column:
        raise ReconciliationConfigError("ID columns must be specified for reconciliation")
    primary_id, comparison_id = id_pair.primary_column, id_pair.comparison_column

    primary_index, primary_skipped, primary_dupes = index_rows(primary_data.rows, primary_id, id_pair)
    comparison_index, comparison_skipped, comparison_dupes = index_rows(
        comparison_data.rows, comparison_id, id_pair
    )
    indexed_comparison = len(comparison_index)
    if primary_dupes or comparison_dupes:
        logger.warning(
            "Duplicate identifiers overwritten (last row wins): primary=%d comparison=%d",
            len(primary_dupes), len(comparison_dupes),
        )

    matches: List[RowMatchResult] = []
    unmatched_primary: List[Dict[str, str]] = []

    for key, primary_row in primary_index.items():
        comparison_row = comparison_index.pop(key, None)
        if comparison_row is None:
            unmatched_primary.append(primary_row)
            continue

        results, score = compare_rows(primary_row, comparison_row, config.comparison_pairs)
        matches.append(RowMatchResult(
            primary_row=primary_row,
            comparison_row=comparison_row,
            id_values={"primary": primary_row.get(primary_id), "comparison": comparison_row.get(comparison_id)},
            comparison_results=results,
            match_score=score,
        ))

    unmatched_comparison = list(comparison_index.values())

    summary = build_summary(
        total_primary=len(primary_data.rows),
        total_comparison=len(comparison_data.rows),
        matched=len(matches),
        unmatched_primary=len(unmatched_primary),
        unmatched_comparison=len(unmatched_comparison),
    )
    logger.info(
        "Reconciled %d primary / %d comparison rows: %d matched (%d%%)",
        summary.total_primary_rows, summary.total_comparison_rows,
        summary.matched_rows, summary.match_percentage,
    )

    return ReconciliationResult(
        matches=matches,
        unmatched_primary=unmatched_primary,
        unmatched_comparison=unmatched_comparison,
        config=config,
        summary=summary,
        diagnostics=ReconciliationDiagnostics(
            indexed_primary_rows=len(primary_index),
            indexed_comparison_rows=indexed_comparison,
            skipped_primary_rows=primary_skipped,
            skipped_comparison_rows=comparison_skipped,
            duplicate_primary_ids=primary_dupes,
            duplicate_comparison_ids=comparison_dupes,
        ),
    )
