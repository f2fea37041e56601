import json
import os
from dataclasses import asdict
from enum import Enum
from typing import Any, Dict

import pandas as pd

from models import ReconciliationResult, Summary
from utils import round_half_up


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def build_summary(total_primary: int,
                  total_comparison: int,
                  matched: int,
                  unmatched_primary: int,
                  unmatched_comparison: int) -> Summary:
    return Summary(
        total_primary_rows=total_primary,
        total_comparison_rows=total_comparison,
        matched_rows=matched,
        unmatched_primary_rows=unmatched_primary,
        unmatched_comparison_rows=unmatched_comparison,
        match_percentage=round_half_up(matched / total_primary * 100) if total_primary > 0 else 0,
    )


def _jsonable(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(v) for v in obj]
    return obj


def tolerance_to_dict(tolerance) -> Dict[str, Any]:
    return {"type": tolerance.type, **asdict(tolerance)}


def result_to_dict(result: ReconciliationResult) -> Dict[str, Any]:
    """JSON-friendly view of a reconciliation result."""
    payload = asdict(result)
    # asdict drops the ClassVar tag that identifies each tolerance
    config = payload["config"]
    config["primary_id_pair"]["tolerance"] = tolerance_to_dict(result.config.primary_id_pair.tolerance)
    for raw, pair in zip(config["comparison_pairs"], result.config.comparison_pairs):
        raw["tolerance"] = tolerance_to_dict(pair.tolerance)
    for raw, match in zip(payload["matches"], result.matches):
        for column, comparison in match.comparison_results.items():
            raw["comparison_results"][column]["tolerance"] = tolerance_to_dict(comparison.tolerance)
    return _jsonable(payload)


def matches_frame(result: ReconciliationResult) -> pd.DataFrame:
    rows = []
    for m in result.matches:
        for column, c in m.comparison_results.items():
            rows.append({
                "primary_id": m.id_values["primary"],
                "comparison_id": m.id_values["comparison"],
                "column": column,
                "primary_value": c.primary_value,
                "comparison_value": c.comparison_value,
                "match": c.match,
                "status": c.status.value,
                "difference": c.difference,
                "reason": c.reason,
                "tolerance": c.tolerance.type,
                "match_score": m.match_score,
            })
        if not m.comparison_results:
            rows.append({
                "primary_id": m.id_values["primary"],
                "comparison_id": m.id_values["comparison"],
                "match_score": m.match_score,
            })
    return pd.DataFrame(rows)


def write_outputs(outputs_dir: str, result: ReconciliationResult) -> None:
    ensure_dir(outputs_dir)

    matched = matches_frame(result)
    matched.to_csv(os.path.join(outputs_dir, "matched.csv"), index=False)
    pd.DataFrame(result.unmatched_primary).to_csv(os.path.join(outputs_dir, "unmatched_primary.csv"), index=False)
    pd.DataFrame(result.unmatched_comparison).to_csv(
        os.path.join(outputs_dir, "unmatched_comparison.csv"), index=False
    )

    payload = result_to_dict(result)
    summary = {
        **payload["summary"],
        "diagnostics": payload["diagnostics"],
        "status_breakdown": (
            {k: int(v) for k, v in matched["status"].value_counts().items()} if "status" in matched.columns else {}
        ),
    }

    with open(os.path.join(outputs_dir, "recon_summary.json"), "w") as f:
        json.dump(summary, f, indent=2, default=str)
