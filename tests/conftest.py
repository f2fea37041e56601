import pytest

from models import ColumnInfo, ColumnPair, ColumnPairSettings, ParsedFileData, ReconciliationConfig


def make_data(rows, name="data.csv"):
    columns = []
    for row in rows:
        for key in row:
            if key not in [c.name for c in columns]:
                columns.append(ColumnInfo(key))
    return ParsedFileData(columns=columns, rows=rows, file_name=name, file_type="csv")


@pytest.fixture
def primary_data():
    return make_data([
        {"ID": "1", "Name": " John Doe ", "Amount": "100.00"},
        {"ID": "2", "Name": "Jane Smith", "Amount": "250.50"},
        {"ID": "3", "Name": "ALICE BROWN", "Amount": "75.25"},
        {"ID": "4", "Name": "Bob Wilson", "Amount": " 500 "},
    ], "primary.csv")


@pytest.fixture
def comparison_data():
    return make_data([
        {"UserID": "1", "FullName": "John Doe", "Value": "100.00"},
        {"UserID": "2", "FullName": "jane smith", "Value": "250.50"},
        {"UserID": "3", "FullName": "Alice Brown", "Value": "75.25"},
        {"UserID": "4", "FullName": "Bob Wilson", "Value": "500"},
        {"UserID": "5", "FullName": "Charlie Day", "Value": "300.00"},
    ], "comparison.csv")


def make_config(case_sensitive=False, trim_values=True, reverse=False):
    settings = ColumnPairSettings(case_sensitive=case_sensitive, trim_values=trim_values)
    return ReconciliationConfig(
        primary_id_pair=ColumnPair("ID", "UserID"),
        comparison_pairs=[
            ColumnPair("Name", "FullName", settings=settings),
            ColumnPair("Amount", "Value", settings=settings),
        ],
        reverse_reconciliation=reverse,
    )
