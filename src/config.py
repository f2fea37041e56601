from dataclasses import dataclass

@dataclass(frozen=True)
class ReconConfig:
    primary_path: str = "data/raw/primary.csv"
    comparison_path: str = "data/raw/comparison.csv"
    rules_path: str = "config/recon_config.json"
    outputs_dir: str = "outputs"

    max_rows: int = 10_000             # per input file
    clean_data: bool = False           # run validate_and_clean before matching
