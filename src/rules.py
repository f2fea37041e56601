import json
from typing import Any, Dict, Optional

from models import (
    AbsoluteTolerance,
    ColumnPair,
    ColumnPairSettings,
    CustomTolerance,
    ExactMatch,
    ReconciliationConfig,
    RelativeTolerance,
    SimilarityTolerance,
    Tolerance,
)


def _get(raw: Dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in raw:
        return raw[camel]
    return raw.get(snake, default)


def tolerance_from_dict(raw: Optional[Dict[str, Any]]) -> Tolerance:
    if not raw:
        return ExactMatch()
    kind = raw.get("type", "exact_match")
    if kind == "exact_match":
        return ExactMatch()
    if kind == "absolute":
        return AbsoluteTolerance(value=float(raw["value"]))
    if kind == "relative":
        return RelativeTolerance(percentage=float(raw["percentage"]))
    if kind == "within_percentage_similarity":
        return SimilarityTolerance(percentage=float(raw["percentage"]))
    if kind == "custom":
        return CustomTolerance(formula=str(raw["formula"]))
    raise ValueError(f"Unknown tolerance type: {kind}")


def settings_from_dict(raw: Optional[Dict[str, Any]], default: ColumnPairSettings) -> ColumnPairSettings:
    if raw is None:
        return default
    return ColumnPairSettings(
        case_sensitive=bool(_get(raw, "caseSensitive", "case_sensitive", default.case_sensitive)),
        trim_values=bool(_get(raw, "trimValues", "trim_values", default.trim_values)),
    )


def pair_from_dict(raw: Dict[str, Any], default_settings: ColumnPairSettings) -> ColumnPair:
    return ColumnPair(
        primary_column=_get(raw, "primaryColumn", "primary_column"),
        comparison_column=_get(raw, "comparisonColumn", "comparison_column"),
        tolerance=tolerance_from_dict(raw.get("tolerance")),
        settings=settings_from_dict(raw.get("settings"), default_settings),
    )


def config_from_dict(raw: Dict[str, Any]) -> ReconciliationConfig:
    """
    Accepts camelCase keys (as saved by the web UI) or snake_case keys.
    Top-level caseSensitive/trimValues are fallbacks for pairs without settings.
    """
    default_settings = settings_from_dict(raw, ColumnPairSettings())
    id_raw = _get(raw, "primaryIdPair", "primary_id_pair") or {}
    pairs_raw = _get(raw, "comparisonPairs", "comparison_pairs") or []

    return ReconciliationConfig(
        primary_id_pair=pair_from_dict(id_raw, default_settings),
        comparison_pairs=[pair_from_dict(p, default_settings) for p in pairs_raw],
        reverse_reconciliation=bool(_get(raw, "reverseReconciliation", "reverse_reconciliation", False)),
        contact_email=_get(raw, "contactEmail", "contact_email"),
    )


def load_reconciliation_config(path: str = "config/recon_config.json") -> ReconciliationConfig:
    with open(path, "r") as f:
        raw: Dict[str, Any] = json.load(f)
    return config_from_dict(raw)
