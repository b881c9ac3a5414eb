from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pyresults import Err, Ok, Result

from prodbooster.core.errors import ParseError, ProdBoosterError
from prodbooster.core.models import Priority
from prodbooster.core.store import Collections
from prodbooster.util.logger import setup_logger
from prodbooster.util.time import start_of_day

logger = setup_logger("prodbooster", is_stream=False, is_file=True)

DEFAULT_SEED_PATH = (Path(__file__).parent / "seed.yaml").as_posix()
SEED_SECTIONS = ("tasks", "events", "notes")

Entry = dict[str, Any]


@dataclass
class SeedReport:
    tasks: int = 0
    events: int = 0
    notes: int = 0

    @property
    def total(self) -> int:
        return self.tasks + self.events + self.notes


def load_seed(path: str = DEFAULT_SEED_PATH) -> Result[dict[str, list[Entry]], str]:
    """Read a seed file.

    Layout (every section optional):

        tasks:  [{title, description, priority: low|medium|high, completed, due_in_hours}]
        events: [{title, description, location, day_offset, start: "HH:MM", end: "HH:MM"}]
        notes:  [{title, content, days_ago}]

    Times are relative to the moment of seeding so the sample data always
    lands around "today".
    """
    _path = Path(path)
    if not _path.exists():
        return Err(f"File not found: {_path}")
    try:
        with _path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return Err(f"Invalid YAML: {e!s}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        return Err(f"Seed file must be a mapping of {', '.join(SEED_SECTIONS)}")

    sections: dict[str, list[Entry]] = {}
    for name in SEED_SECTIONS:
        entries = data.get(name) or []
        if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
            return Err(f"Section '{name}' must be a list of mappings")
        sections[name] = entries
    return Ok(sections)


def _title(entry: Entry, section: str) -> Result[str, ProdBoosterError]:
    title = str(entry.get("title") or "").strip()
    if not title:
        return Err(ParseError(f"{section}: entry without title"))
    return Ok(title)


def _clock(base: datetime, value: Any, section: str, title: str) -> Result[datetime, ProdBoosterError]:
    try:
        t = datetime.strptime(str(value), "%H:%M").time()
    except ValueError:
        return Err(ParseError(f"{section}/{title}: invalid time '{value}' (expected HH:MM)"))
    return Ok(datetime.combine(base.date(), t))


def seed_collections(  # noqa: C901
    collections: Collections,
    sections: dict[str, list[Entry]],
    current: datetime,
) -> Result[SeedReport, ProdBoosterError]:
    """Add every seed entry through the collection stores.

    Stops at the first failing entry; entries added before it stay stored.
    """
    report = SeedReport()

    for entry in sections.get("tasks", []):
        title = _title(entry, "tasks")
        if title.is_err():
            return Err(title.unwrap_err())
        try:
            priority = Priority.from_label(str(entry.get("priority", "medium")))
            due_in = entry.get("due_in_hours")
            due_at = None if due_in is None else current + timedelta(hours=float(due_in))
        except (KeyError, TypeError, ValueError) as e:
            return Err(ParseError(f"tasks/{title.unwrap()}: {e!s}"))
        match collections.tasks.add(title.unwrap(), str(entry.get("description", "")), priority, due_at):
            case Ok(task):
                if entry.get("completed"):
                    done = collections.tasks.toggle_completed(task.id)
                    if done.is_err():
                        return Err(done.unwrap_err())
            case Err(e):
                return Err(e)
        report.tasks += 1

    for entry in sections.get("events", []):
        title = _title(entry, "events")
        if title.is_err():
            return Err(title.unwrap_err())
        try:
            day = start_of_day(current) + timedelta(days=int(entry.get("day_offset", 0)))
        except (TypeError, ValueError) as e:
            return Err(ParseError(f"events/{title.unwrap()}: {e!s}"))
        start = _clock(day, entry.get("start", "09:00"), "events", title.unwrap())
        if start.is_err():
            return Err(start.unwrap_err())
        end = _clock(day, entry["end"], "events", title.unwrap()) if "end" in entry else Ok(start.unwrap())
        if end.is_err():
            return Err(end.unwrap_err())
        added = collections.events.add(
            title.unwrap(),
            str(entry.get("description", "")),
            str(entry.get("location", "")),
            start.unwrap(),
            end.unwrap(),
        )
        if added.is_err():
            return Err(added.unwrap_err())
        report.events += 1

    for entry in sections.get("notes", []):
        title = _title(entry, "notes")
        if title.is_err():
            return Err(title.unwrap_err())
        try:
            created_at = current - timedelta(days=float(entry.get("days_ago", 0)))
        except (TypeError, ValueError) as e:
            return Err(ParseError(f"notes/{title.unwrap()}: {e!s}"))
        added = collections.notes.add(title.unwrap(), str(entry.get("content", "")), created_at)
        if added.is_err():
            return Err(added.unwrap_err())
        report.notes += 1

    logger.info("seeded %d task(s), %d event(s), %d note(s)", report.tasks, report.events, report.notes)
    return Ok(report)
