from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Union


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    inferred_type: str = "text"


@dataclass(frozen=True)
class ParsedFileData:
    """Columns and string-valued rows of one input file."""
    columns: List[ColumnInfo]
    rows: List[Dict[str, str]]
    file_name: str = ""
    file_type: str = ""

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]


@dataclass(frozen=True)
class ColumnPairSettings:
    case_sensitive: bool = False
    trim_values: bool = True


@dataclass(frozen=True)
class ExactMatch:
    type: ClassVar[str] = "exact_match"


@dataclass(frozen=True)
class AbsoluteTolerance:
    value: float
    type: ClassVar[str] = "absolute"


@dataclass(frozen=True)
class RelativeTolerance:
    percentage: float
    type: ClassVar[str] = "relative"


@dataclass(frozen=True)
class SimilarityTolerance:
    percentage: float
    type: ClassVar[str] = "within_percentage_similarity"


@dataclass(frozen=True)
class CustomTolerance:
    formula: str
    type: ClassVar[str] = "custom"


Tolerance = Union[ExactMatch, AbsoluteTolerance, RelativeTolerance, SimilarityTolerance, CustomTolerance]


@dataclass(frozen=True)
class ColumnPair:
    primary_column: Optional[str]
    comparison_column: Optional[str]
    tolerance: Tolerance = field(default_factory=ExactMatch)
    settings: ColumnPairSettings = field(default_factory=ColumnPairSettings)

    @property
    def is_complete(self) -> bool:
        return bool(self.primary_column) and bool(self.comparison_column)

    def flipped(self) -> "ColumnPair":
        return replace(self, primary_column=self.comparison_column, comparison_column=self.primary_column)


@dataclass(frozen=True)
class ReconciliationConfig:
    primary_id_pair: ColumnPair
    comparison_pairs: List[ColumnPair] = field(default_factory=list)
    reverse_reconciliation: bool = False
    contact_email: Optional[str] = None

    def flipped(self) -> "ReconciliationConfig":
        """Swap primary/comparison roles on every column pair."""
        return replace(
            self,
            primary_id_pair=self.primary_id_pair.flipped(),
            comparison_pairs=[p.flipped() for p in self.comparison_pairs],
        )


class MatchStatus(str, Enum):
    EXACT_MATCH = "exact_match"
    WITHIN_TOLERANCE = "within_tolerance"
    PARTIAL_MATCH = "partial_match"
    NO_MATCH = "no_match"
    MISSING = "missing"


@dataclass(frozen=True)
class ToleranceResult:
    matches: bool
    reason: str


@dataclass(frozen=True)
class FormulaResult:
    result: bool
    evaluated_formula: str


@dataclass(frozen=True)
class ComparisonResult:
    primary_value: Optional[str]
    comparison_value: Optional[str]
    match: bool
    difference: Union[float, str]
    reason: str
    status: MatchStatus
    tolerance: Tolerance


@dataclass(frozen=True)
class RowMatchResult:
    primary_row: Dict[str, str]
    comparison_row: Dict[str, str]
    id_values: Dict[str, str]
    comparison_results: Dict[str, ComparisonResult]
    match_score: int


@dataclass(frozen=True)
class Summary:
    total_primary_rows: int
    total_comparison_rows: int
    matched_rows: int
    unmatched_primary_rows: int
    unmatched_comparison_rows: int
    match_percentage: int


@dataclass(frozen=True)
class ReconciliationDiagnostics:
    """Rows left out of indexing (blank identifier) and identifiers that
    occurred more than once; only the last such row takes part in matching."""
    indexed_primary_rows: int = 0
    indexed_comparison_rows: int = 0
    skipped_primary_rows: int = 0
    skipped_comparison_rows: int = 0
    duplicate_primary_ids: Dict[str, int] = field(default_factory=dict)
    duplicate_comparison_ids: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ReconciliationResult:
    matches: List[RowMatchResult]
    unmatched_primary: List[Dict[str, str]]
    unmatched_comparison: List[Dict[str, str]]
    config: ReconciliationConfig
    summary: Summary
    diagnostics: ReconciliationDiagnostics = field(default_factory=ReconciliationDiagnostics)
