"""Class roster and grouping configuration save/load functionality."""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from .models import ClassData, GroupingConfig, StoredClass
from .translations import tr

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _write_json(data: dict, path: Path) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def _read_json(path: Path) -> dict:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def create_empty_class(name: str) -> StoredClass:
    """Create a new class with no learners."""
    return StoredClass(id=str(uuid.uuid4()), name=name, updated_at=_now(), data=ClassData())


def save_config(config: GroupingConfig, path: str | Path) -> None:
    """Save grouping configuration to a JSON file."""
    _write_json(config.to_dict(), Path(path))


def load_config(path: str | Path) -> GroupingConfig:
    """Load grouping configuration from a JSON file."""
    return GroupingConfig.from_dict(_read_json(Path(path)))


class ClassStore:
    """Stored classes kept as one JSON file per class in a directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, class_id: str) -> Path:
        # Class files must stay directly inside root
        if not class_id or class_id in (".", "..") or "/" in class_id or "\\" in class_id:
            raise ValueError(tr("Invalid class id: {class_id}").format(class_id=class_id))
        return self.root / f"{class_id}.json"

    def list_classes(self) -> list[StoredClass]:
        """All stored classes, ordered by name."""
        classes = [StoredClass.from_dict(_read_json(p)) for p in sorted(self.root.glob("*.json"))]
        return sorted(classes, key=lambda c: c.name)

    def load_class(self, class_id: str) -> StoredClass:
        path = self._path(class_id)
        if not path.exists():
            raise KeyError(tr("Class not found: {class_id}").format(class_id=class_id))
        return StoredClass.from_dict(_read_json(path))

    def save_class(self, stored: StoredClass) -> StoredClass:
        """Write a class, stamping ``updated_at`` if it is not set."""
        if not stored.updated_at:
            stored = StoredClass(id=stored.id, name=stored.name, updated_at=_now(), data=stored.data)
        _write_json(stored.to_dict(), self._path(stored.id))
        logger.info("Saved class %s (%d learners)", stored.name, len(stored.data.learners))
        return stored

    def delete_class(self, class_id: str) -> None:
        path = self._path(class_id)
        if path.exists():
            path.unlink()
            logger.info("Deleted class %s", class_id)
