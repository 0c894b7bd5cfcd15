"""Shared fixtures for gridselect tests."""

from datetime import date

import pytest

SAMPLE_HEADER = "name,age,city,department"
SAMPLE_ROWS = [
    ("John Doe", "28", "New York", "Engineering"),
    ("Jane Smith", "34", "Scranton", "Sales"),
    ("Bob Johnson", "45", "Scranton", "Engineering"),
    ("Alice Williams", "29", "Boston", "Marketing"),
    ("Charlie Brown", "52", "New York", "Sales"),
] + [
    (f"Person {i:02d}", str(20 + i), "Scranton" if i % 2 else "Chicago", "Support")
    for i in range(1, 21)
]


@pytest.fixture
def sample_csv_path(tmp_path):
    """25-row CSV: 5 named people followed by Person 01..Person 20."""
    path = tmp_path / "people.csv"
    lines = [SAMPLE_HEADER] + [",".join(row) for row in SAMPLE_ROWS]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def task_rows():
    return [
        {
            "task": "A",
            "status": {"id": 1, "name": "Open"},
            "due": date(2024, 3, 1),
            "notes": "first",
        },
        {
            "task": "B",
            "status": {"id": 2, "name": "Done"},
            "due": None,
            "notes": "second",
        },
        {
            "task": "C",
            "status": {"id": 1, "name": "Open"},
            "due": date(2024, 3, 9),
            "notes": "third",
        },
    ]


@pytest.fixture
def clipboard(monkeypatch):
    """Capture writes to the system clipboard."""
    import pyperclip

    written: list[str] = []
    monkeypatch.setattr(pyperclip, "copy", written.append)
    return written
