"""Roster import and export (JSON, CSV and Excel)."""

import json
import logging
import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import pandas as pd
from pydantic import BaseModel, Field, ValidationError

from .models import ClassData, GroupingResult, Learner, PerformanceLevel
from .translations import tr

logger = logging.getLogger(__name__)

# Legacy .xls needs xlrd, which is not a dependency
EXCEL_SUFFIXES = (".xlsx",)

# Accepted column names for the relationship cells
PREFER_COLUMNS = ("prefer", "prefers")
AVOID_COLUMNS = ("avoid", "conflicts")


@dataclass
class ImportResult:
    """Imported roster plus anything worth telling the user about it."""
    data: ClassData
    warnings: list[str] = field(default_factory=list)


class LearnerRecord(BaseModel):
    """One learner as it appears in an import file, before IDs are resolved."""
    id: str | None = None
    name: str = Field(..., min_length=1)
    performance: Literal["low", "medium", "high"] = "medium"
    prefer: list[str] | None = None
    avoid: list[str] | None = None
    notes: str | None = None


class ClassRecord(BaseModel):
    """Top level of a JSON class file."""
    learners: list[LearnerRecord]


def generate_id(prefix: str = "learner") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def parse_list(value) -> list[str]:
    """Parse a list of names or IDs separated by commas, semicolons or newlines."""
    if value is None or pd.isna(value):
        return []
    return [part.strip() for part in re.split(r"[,;\n]", str(value)) if part.strip()]


def to_performance(value) -> PerformanceLevel:
    """Lenient performance parsing for spreadsheet cells."""
    if value is None or pd.isna(value) or not str(value).strip():
        return PerformanceLevel.MEDIUM
    lowered = str(value).strip().lower()
    if lowered.startswith("h"):
        return PerformanceLevel.HIGH
    if lowered.startswith("l"):
        return PerformanceLevel.LOW
    return PerformanceLevel.MEDIUM


def _cell(row: pd.Series, *columns: str) -> str:
    for column in columns:
        if column in row.index:
            value = row[column]
            if value is None or pd.isna(value):
                return ""
            return str(value).strip()
    return ""


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


def read_json_learners(path: str | Path) -> list[LearnerRecord]:
    """Read and validate learner records from a JSON class file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    try:
        return ClassRecord.model_validate(data).learners
    except ValidationError as error:
        raise ValueError(tr("Invalid class file: {details}").format(details=_describe(error))) from None


def read_table_learners(df: pd.DataFrame) -> list[LearnerRecord]:
    """Read learner records from a table with id/name/performance/prefer/avoid/notes columns."""
    df = df.rename(columns={c: str(c).strip().lower() for c in df.columns})
    learners = []

    for _, row in df.iterrows():
        name = _cell(row, "name")
        if not name:
            continue
        learners.append(LearnerRecord(
            id=_cell(row, "id") or None,
            name=name,
            performance=to_performance(_cell(row, "performance")).value,
            prefer=parse_list(_cell(row, *PREFER_COLUMNS)),
            avoid=parse_list(_cell(row, *AVOID_COLUMNS)),
            notes=_cell(row, "notes") or None,
        ))

    return learners


def normalize_learners(raw: list[LearnerRecord]) -> ImportResult:
    """Assign missing IDs and resolve relationship entries given by name or ID."""
    with_ids = [(entry, entry.id if entry.id and entry.id.strip() else generate_id()) for entry in raw]

    name_to_id = {entry.name: learner_id for entry, learner_id in with_ids}
    known_ids = {learner_id for _, learner_id in with_ids}
    unresolved: list[str] = []

    def resolve(refs: list[str] | None) -> list[str]:
        resolved = []
        for ref in refs or []:
            if ref in name_to_id:
                resolved.append(name_to_id[ref])
            elif ref in known_ids:
                resolved.append(ref)
            elif ref not in unresolved:
                unresolved.append(ref)
        return resolved

    learners = [
        Learner(
            id=learner_id,
            name=entry.name,
            performance=PerformanceLevel(entry.performance),
            prefer=resolve(entry.prefer),
            avoid=resolve(entry.avoid),
            notes=entry.notes,
        )
        for entry, learner_id in with_ids
    ]

    warnings = []
    if unresolved:
        logger.warning("Unresolved relationship references: %s", unresolved)
        warnings.append(tr("Some relationships could not be resolved: {refs}").format(
            refs=", ".join(unresolved)))

    return ImportResult(data=ClassData(learners=learners), warnings=warnings)


def import_roster(path: str | Path) -> ImportResult:
    """Import a class roster from a JSON, CSV or Excel file."""
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        raw = read_json_learners(path)
    elif suffix == ".csv":
        raw = read_table_learners(pd.read_csv(path, dtype=str, keep_default_na=False))
    elif suffix in EXCEL_SUFFIXES:
        raw = read_table_learners(pd.read_excel(path, dtype=str))
    else:
        raise ValueError(tr("Unsupported file type: {suffix}").format(suffix=suffix or path.name))

    result = normalize_learners(raw)
    logger.info("Imported %d learners from %s", len(result.data.learners), path)
    return result


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def _ensure_extension(path: Path) -> Path:
    if path.suffix.lower() in (".json", ".csv") + EXCEL_SUFFIXES:
        return path
    return path.with_name(path.name + ".csv")


def _write_table(df: pd.DataFrame, path: Path) -> None:
    if path.suffix.lower() in EXCEL_SUFFIXES:
        df.to_excel(path, index=False)
    else:
        df.to_csv(path, index=False)


def roster_rows(data: ClassData) -> list[dict]:
    """Table rows for a roster, relationships rendered as peer names."""
    names = {s.id: s.name for s in data.learners}

    def peer_names(ids: frozenset[str]) -> str:
        return "; ".join(names[i] for i in sorted(ids) if i in names)

    return [
        {
            "id": learner.id,
            "name": learner.name,
            "performance": learner.performance.value,
            "prefer": peer_names(learner.prefer),
            "avoid": peer_names(learner.avoid),
            "notes": learner.notes or "",
        }
        for learner in data.learners
    ]


def export_roster(data: ClassData, path: str | Path) -> Path:
    """Export a roster to JSON, CSV or Excel. Returns the path written."""
    path = _ensure_extension(Path(path))

    if path.suffix.lower() == ".json":
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data.to_dict(), f, indent=2, ensure_ascii=False)
    else:
        columns = ["id", "name", "performance", "prefer", "avoid", "notes"]
        _write_table(pd.DataFrame(roster_rows(data), columns=columns), path)

    logger.info("Exported %d learners to %s", len(data.learners), path)
    return path


def export_result(result: GroupingResult, path: str | Path) -> Path:
    """Export a grouping as one row per learner with its group label."""
    path = _ensure_extension(Path(path))

    if path.suffix.lower() == ".json":
        with open(path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
        return path

    rows = []
    for group in result.groups:
        for member in group.members:
            rows.append({"group": group.label, "id": member.id, "name": member.name,
                         "performance": member.performance.value})
    for learner in result.unassigned:
        rows.append({"group": "", "id": learner.id, "name": learner.name,
                     "performance": learner.performance.value})

    _write_table(pd.DataFrame(rows, columns=["group", "id", "name", "performance"]), path)
    return path
