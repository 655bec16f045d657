from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Paths:
    package_dir: Path
    data_dir: Path
    schema_dir: Path
    userdata_dir: Path

    @property
    def records_path(self) -> Path:
        return self.userdata_dir / "records.json"

    @property
    def telemetry_path(self) -> Path:
        return self.userdata_dir / "telemetry.jsonl"

    @property
    def log_path(self) -> Path:
        return self.userdata_dir / "memorymind.log"


def get_paths(userdata_dir: Path | None = None) -> Paths:
    # src/memorymind/paths.py -> package dir holds the shipped data
    package_dir = Path(__file__).resolve().parent
    data_dir = package_dir / "data"
    schema_dir = data_dir / "schemas"
    if userdata_dir is None:
        home = os.environ.get("MEMORYMIND_HOME")
        userdata_dir = Path(home) if home else Path.home() / ".memorymind"
    return Paths(
        package_dir=package_dir,
        data_dir=data_dir,
        schema_dir=schema_dir,
        userdata_dir=userdata_dir,
    )
