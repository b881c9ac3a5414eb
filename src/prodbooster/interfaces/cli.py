# ruff: noqa: T201

import argparse
import sys

from pyresults import Err, Ok

from prodbooster.core.store import open_collections
from prodbooster.interfaces.tui import endpoint
from prodbooster.interfaces.tui.data import ViewId
from prodbooster.io.seed_io import DEFAULT_SEED_PATH, load_seed, seed_collections
from prodbooster.storage import Storage, get_storage
from prodbooster.util.dirs import DEFAULT_START_VIEW, ensure_dirs, load_env
from prodbooster.util.logger import setup_logger, setup_mode
from prodbooster.util.time import now

logger = setup_logger("prodbooster", is_stream=False, is_file=True)

VIEW_CHOICES = [v.value for v in ViewId]


def open_storage(db_path: str | None) -> Storage | None:
    """Open and initialise storage. Return None (after reporting) on failure."""
    try:
        storage = get_storage(db_path)
    except ValueError as e:
        _msg = f"An error occurred while opening storage: {e!s}"
        logger.exception(_msg)
        print(f"Error: {e}", file=sys.stderr)
        return None
    match storage.init_schema():
        case Err(e):
            print(f"Error: {e}", file=sys.stderr)
            storage.close()
            return None
        case _:
            return storage


def _start_view(name: str | None) -> ViewId:
    env = load_env()
    value = name or env["START_VIEW"]
    try:
        return ViewId(value)
    except ValueError:
        logger.warning("Unknown start view '%s'; using %s", value, DEFAULT_START_VIEW)
        return ViewId(DEFAULT_START_VIEW)


def cmd_tui(args: argparse.Namespace) -> int:
    storage = open_storage(args.db)
    if storage is None:
        return 1
    try:
        collections = open_collections(storage)
        return endpoint.run(collections, _start_view(args.view))
    finally:
        storage.close()


def cmd_seed(args: argparse.Namespace) -> int:
    match load_seed(args.file):
        case Ok(sections):
            pass
        case Err(e):
            logger.error("seed: %s", e)
            print(f"Error: {e}", file=sys.stderr)
            return 1
        case _:
            return 1

    storage = open_storage(args.db)
    if storage is None:
        return 1
    try:
        collections = open_collections(storage)
        match seed_collections(collections, sections, now()):
            case Ok(report):
                print(f"Seeded {report.tasks} task(s), {report.events} event(s), {report.notes} note(s)")
                return 0
            case Err(e):
                print(f"Error: {e}", file=sys.stderr)
                return 1
            case _:
                return 1
    finally:
        storage.close()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="prodbooster", description="Tasks, notes and calendar in the terminal")
    p.add_argument("--debug", action="store_true", help="debug mode")
    p.add_argument("--db", help="SQLite database path (default: DB_PATH from config.env)")
    p.add_argument("--view", choices=VIEW_CHOICES, help="view shown at start")
    p.set_defaults(func=cmd_tui)
    return p


def build_seed_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="prodbooster-seed", description="Fill the database with sample data")
    p.add_argument("--debug", action="store_true", help="debug mode")
    p.add_argument("--db", help="SQLite database path (default: DB_PATH from config.env)")
    p.add_argument("--file", default=DEFAULT_SEED_PATH, help="seed YAML file")
    p.set_defaults(func=cmd_seed)
    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    args = build_parser().parse_args(argv)
    ensure_dirs()
    setup_mode(is_debug=args.debug)
    return args.func(args)  # type: ignore[no-any-return]


def seed_main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    args = build_seed_parser().parse_args(argv)
    ensure_dirs()
    setup_mode(is_debug=args.debug)
    return args.func(args)  # type: ignore[no-any-return]


if __name__ == "__main__":
    sys.exit(main())
