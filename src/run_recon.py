import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from config import ReconConfig
from ingest import load_file
from match import reconcile
from report import write_outputs
from rules import load_reconciliation_config
from standardize import data_quality_score, validate_and_clean


def _parse_args(argv: Optional[List[str]], cfg: ReconConfig) -> ReconConfig:
    parser = argparse.ArgumentParser(description="Reconcile two tabular files and write a report.")
    parser.add_argument("--primary", default=cfg.primary_path)
    parser.add_argument("--comparison", default=cfg.comparison_path)
    parser.add_argument("--rules", default=cfg.rules_path)
    parser.add_argument("--outputs", default=cfg.outputs_dir)
    parser.add_argument("--max-rows", type=int, default=cfg.max_rows)
    parser.add_argument("--clean", action="store_true", default=cfg.clean_data)
    args = parser.parse_args(argv)
    return replace(
        cfg,
        primary_path=args.primary,
        comparison_path=args.comparison,
        rules_path=args.rules,
        outputs_dir=args.outputs,
        max_rows=args.max_rows,
        clean_data=args.clean,
    )


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    cfg = _parse_args(argv, ReconConfig())

    try:
        recon_config = load_reconciliation_config(cfg.rules_path)
        primary = load_file(cfg.primary_path, max_rows=cfg.max_rows)
        comparison = load_file(cfg.comparison_path, max_rows=cfg.max_rows)

        if cfg.clean_data:
            checked = []
            for data in (primary, comparison):
                validation = validate_and_clean(data)
                for issue in validation.issues:
                    print(f"[{data.file_name}] {issue.severity}: {issue.message}")
                print(f"[{data.file_name}] data quality score: {data_quality_score(validation)}")
                checked.append(validation.cleaned_data)
            primary, comparison = checked

        result = reconcile(primary, comparison, recon_config)
    except (ValueError, KeyError, OSError) as e:
        print(f"Reconciliation could not start: {e}", file=sys.stderr)
        return 2

    write_outputs(cfg.outputs_dir, result)

    s = result.summary
    print(f"Wrote outputs to {cfg.outputs_dir}/")
    print(f"Matched: {s.matched_rows} ({s.match_percentage}%) | Unmatched primary: {s.unmatched_primary_rows} "
          f"| Unmatched comparison: {s.unmatched_comparison_rows}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
