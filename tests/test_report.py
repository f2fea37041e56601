import json

from conftest import make_config
from match import reconcile
from models import ColumnPair, RelativeTolerance, ReconciliationConfig
from report import build_summary, matches_frame, result_to_dict, write_outputs


def test_build_summary():
    empty = build_summary(0, 0, 0, 0, 0)
    assert empty.match_percentage == 0

    summary = build_summary(8, 3, 1, 7, 2)
    assert summary.match_percentage == 13
    assert summary.total_comparison_rows == 3
    assert summary.unmatched_comparison_rows == 2


def test_result_to_dict_is_json_ready(primary_data, comparison_data):
    config = ReconciliationConfig(
        ColumnPair("ID", "UserID"),
        [ColumnPair("Name", "FullName"), ColumnPair("Amount", "Value", tolerance=RelativeTolerance(2))],
    )
    payload = result_to_dict(reconcile(primary_data, comparison_data, config))

    json.dumps(payload)
    assert payload["config"]["comparison_pairs"][1]["tolerance"] == {"type": "relative", "percentage": 2}
    assert payload["config"]["primary_id_pair"]["tolerance"] == {"type": "exact_match"}
    first = payload["matches"][0]["comparison_results"]["Name"]
    assert first["status"] == "exact_match"
    assert first["tolerance"] == {"type": "exact_match"}
    assert payload["summary"]["matched_rows"] == 4


def test_matches_frame(primary_data, comparison_data):
    frame = matches_frame(reconcile(primary_data, comparison_data, make_config()))
    assert len(frame) == 8
    assert set(frame["status"]) == {"exact_match"}
    assert list(frame["primary_id"][:2]) == ["1", "1"]


def test_write_outputs(tmp_path, primary_data, comparison_data):
    result = reconcile(primary_data, comparison_data, make_config(trim_values=False))
    write_outputs(str(tmp_path), result)

    for name in ("matched.csv", "unmatched_primary.csv", "unmatched_comparison.csv", "recon_summary.json"):
        assert (tmp_path / name).exists()

    summary = json.loads((tmp_path / "recon_summary.json").read_text())
    assert summary["matched_rows"] == 4
    assert summary["unmatched_comparison_rows"] == 1
    assert summary["status_breakdown"]["partial_match"] == 2
    assert summary["diagnostics"]["indexed_comparison_rows"] == 5
