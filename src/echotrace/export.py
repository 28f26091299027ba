"""Write stats snapshots to JSON files."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path

from .db import DAY_FMT
from .models import StatsSnapshot

logger = logging.getLogger(__name__)


def export_filename(day: date) -> str:
    return f"echotrace-export-{day.strftime(DAY_FMT)}.json"


def render_export(snapshot: StatsSnapshot) -> str:
    return json.dumps(snapshot.to_payload(), indent=2)


def export_snapshot(snapshot: StatsSnapshot, directory: Path, day: date) -> Path:
    """Write ``snapshot`` into ``directory``, replacing an export from the same day."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(day)
    path.write_text(render_export(snapshot) + "\n", encoding="utf-8")
    logger.info("Exported stats to %s", path)
    return path
