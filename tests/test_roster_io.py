import json

import pandas as pd
import pytest

from learner_groups.models import ClassData, GroupingResult, GroupResult, Learner, PerformanceLevel
from learner_groups.roster_io import (
    export_result,
    export_roster,
    import_roster,
    parse_list,
    to_performance,
)
from learner_groups.translations import set_language

CSV = """id,name,performance,prefer,avoid,notes
a1,Anna,high,Ben,,
,Ben,Low,"Anna; Cleo",ghost,quiet
c3,Cleo,,,Anna,
,,high,,,
"""


@pytest.fixture
def csv_roster(tmp_path):
    path = tmp_path / "class.csv"
    path.write_text(CSV, encoding="utf-8")
    return path


def test_parse_list():
    assert parse_list("a, b;c\nd") == ["a", "b", "c", "d"]
    assert parse_list("") == []
    assert parse_list(None) == []


@pytest.mark.parametrize("value,expected", [
    ("High", PerformanceLevel.HIGH),
    ("low", PerformanceLevel.LOW),
    ("l", PerformanceLevel.LOW),
    ("medium", PerformanceLevel.MEDIUM),
    ("whatever", PerformanceLevel.MEDIUM),
    ("", PerformanceLevel.MEDIUM),
    (None, PerformanceLevel.MEDIUM),
])
def test_to_performance(value, expected):
    assert to_performance(value) == expected


def test_import_csv(csv_roster):
    result = import_roster(csv_roster)
    learners = {s.name: s for s in result.data.learners}

    # the row without a name is skipped
    assert list(learners) == ["Anna", "Ben", "Cleo"]

    ben = learners["Ben"]
    assert ben.id.startswith("learner-")
    assert ben.performance == PerformanceLevel.LOW
    assert ben.prefer == {"a1", "c3"}
    assert ben.avoid == frozenset()
    assert ben.notes == "quiet"

    assert learners["Anna"].prefer == {ben.id}
    assert learners["Cleo"].performance == PerformanceLevel.MEDIUM
    assert learners["Cleo"].avoid == {"a1"}

    assert len(result.warnings) == 1
    assert "ghost" in result.warnings[0]


def test_import_warning_translated(csv_roster):
    set_language("de")
    result = import_roster(csv_roster)
    assert result.warnings[0].startswith("Einige Beziehungen konnten nicht zugeordnet werden")


def test_import_json_resolves_ids_and_names(tmp_path):
    path = tmp_path / "class.json"
    path.write_text(json.dumps({"learners": [
        {"id": "x1", "name": "Anna", "performance": "high", "avoid": ["Ben"]},
        {"name": "Ben", "prefer": ["x1"], "notes": "new"},
    ]}), encoding="utf-8")

    result = import_roster(path)
    anna, ben = result.data.learners
    assert anna.avoid == {ben.id}
    assert ben.prefer == {"x1"}
    assert ben.performance == PerformanceLevel.MEDIUM
    assert result.warnings == []


@pytest.mark.parametrize("payload,location", [
    ({"learners": [{"name": ""}]}, "learners.0.name"),
    ({"learners": [{"name": "Anna", "performance": "great"}]}, "learners.0.performance"),
    ({"learners": [{"name": "Anna", "prefer": "Ben"}]}, "learners.0.prefer"),
    ({"learners": [{"name": "Anna", "notes": 42}]}, "learners.0.notes"),
    ({"learners": [{"name": "Anna"}, {"name": "Ben", "id": 7}]}, "learners.1.id"),
    ({"students": []}, "learners"),
])
def test_import_json_validation(tmp_path, payload, location):
    path = tmp_path / "class.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(ValueError) as excinfo:
        import_roster(path)
    message = str(excinfo.value)
    assert message.startswith("Invalid class file: ")
    assert location in message


def test_import_json_rejects_non_object(tmp_path):
    path = tmp_path / "class.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid class file"):
        import_roster(path)


def test_import_json_validation_translated(tmp_path):
    set_language("de")
    path = tmp_path / "class.json"
    path.write_text(json.dumps({"learners": [{"name": ""}]}), encoding="utf-8")
    with pytest.raises(ValueError, match="Ungültige Klassendatei"):
        import_roster(path)


def test_unknown_references_are_dropped(tmp_path):
    # entries matching neither a name nor an ID are not kept as raw IDs
    path = tmp_path / "class.json"
    path.write_text(json.dumps({"learners": [
        {"id": "a", "name": "Anna", "prefer": ["learner-from-elsewhere"], "avoid": ["Zed"]},
    ]}), encoding="utf-8")

    result = import_roster(path)
    anna = result.data.learners[0]
    assert anna.prefer == frozenset()
    assert anna.avoid == frozenset()
    assert result.warnings == ["Some relationships could not be resolved: learner-from-elsewhere, Zed"]


def test_import_unsupported_suffix(tmp_path):
    path = tmp_path / "class.txt"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ValueError, match="Unsupported file type"):
        import_roster(path)


def test_import_legacy_excel_unsupported(tmp_path):
    path = tmp_path / "class.xls"
    path.write_bytes(b"")
    with pytest.raises(ValueError, match="Unsupported file type: .xls"):
        import_roster(path)


def test_export_roster_csv_uses_names(tmp_path):
    data = ClassData(learners=[
        Learner(id="a", name="Anna", prefer={"b", "ghost"}),
        Learner(id="b", name="Ben", performance=PerformanceLevel.HIGH, avoid={"a"}, notes="n"),
    ])
    path = export_roster(data, tmp_path / "out")
    assert path.name == "out.csv"

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    assert list(df.columns) == ["id", "name", "performance", "prefer", "avoid", "notes"]
    assert df.loc[0, "prefer"] == "Ben"
    assert df.loc[1, "avoid"] == "Anna"
    assert df.loc[1, "performance"] == "high"


def test_export_then_import_excel(tmp_path):
    data = ClassData(learners=[
        Learner(id="a", name="Anna", prefer={"b"}),
        Learner(id="b", name="Ben", performance=PerformanceLevel.LOW),
    ])
    path = export_roster(data, tmp_path / "class.xlsx")
    result = import_roster(path)
    assert result.data.learners == data.learners


def test_export_roster_json(tmp_path):
    data = ClassData(learners=[Learner(id="a", name="Anna")])
    path = export_roster(data, tmp_path / "class.json")
    assert json.loads(path.read_text(encoding="utf-8")) == data.to_dict()


def test_export_result_rows(tmp_path):
    anna = Learner(id="a", name="Anna")
    ben = Learner(id="b", name="Ben", performance=PerformanceLevel.LOW)
    result = GroupingResult(groups=[GroupResult(label="Group 1", members=[anna])], unassigned=[ben])

    path = export_result(result, tmp_path / "groups.csv")
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    assert df.to_dict("records") == [
        {"group": "Group 1", "id": "a", "name": "Anna", "performance": "medium"},
        {"group": "", "id": "b", "name": "Ben", "performance": "low"},
    ]
