from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from memorymind.engine.types import Difficulty, DifficultyProfile, DifficultyTable


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContentError(f"Expected int for {key}")
    return v


def _require_number(obj: Mapping[str, object], key: str, default: float | None = None) -> float:
    v = obj.get(key, default)
    if not isinstance(v, (int, float)) or isinstance(v, bool):
        raise ContentError(f"Expected number for {key}")
    return float(v)


def parse_difficulty_table(raw: object) -> DifficultyTable:
    if not isinstance(raw, dict):
        raise ContentError("difficulties.json must be an object")
    raw_levels = raw.get("difficulties")
    if not isinstance(raw_levels, dict):
        raise ContentError("difficulties.json.difficulties must be an object")

    profiles: dict[Difficulty, DifficultyProfile] = {}
    for name, item in raw_levels.items():
        level = Difficulty.parse(name)
        if level is None:
            raise ContentError(f"Unknown difficulty level: {name}")
        if not isinstance(item, dict):
            raise ContentError(f"Difficulty {name} must be an object")
        try:
            profiles[level] = DifficultyProfile(
                rows=_require_int(item, "rows"),
                cols=_require_int(item, "cols"),
                base_accuracy=_require_number(item, "base_accuracy"),
                thinking_multiplier=_require_number(item, "thinking_multiplier", 1.0),
            )
        except ValueError as e:
            raise ContentError(f"Invalid difficulty {name}: {e}") from e

    try:
        return DifficultyTable(profiles=profiles)
    except ValueError as e:
        raise ContentError(str(e)) from e


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_difficulty_table(self) -> DifficultyTable:
        path = self._data_dir / "difficulties.json"
        schema = _load_json(self._schema_dir / "difficulties.schema.json")
        raw = _load_json(path)
        validate_json(raw, schema, context=str(path))
        return parse_difficulty_table(raw)

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_difficulty_table()
