import os
import re
from pathlib import Path

DEFAULT_HOME = os.environ.get("PB_HOME_DIR", (Path.home() / ".prodbooster").as_posix())
DEFAULT_DB_PATH = (Path(DEFAULT_HOME) / "data.db").as_posix()
DEFAULT_ENV_PATH = (Path(DEFAULT_HOME) / "config.env").as_posix()
DEFAULT_START_VIEW = "dashboard"


def ensure_dirs(path: str = DEFAULT_HOME) -> None:
    _path = Path(path)
    _path.mkdir(parents=True, exist_ok=True)


def _read_env_file(path: str) -> dict[str, str]:
    env: dict[str, str] = {}
    _path = Path(path)
    if not _path.exists():
        return env
    with _path.open(encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            m = re.match(r"([^=]+)=(.*)", line)
            if m:
                key = m.group(1).strip()
                val = m.group(2).strip().strip('"').strip("'")
                env[key] = val
    return env


def load_env(path: str = DEFAULT_ENV_PATH) -> dict[str, str]:
    """Read config.env and apply PB_* environment overrides.

    Resolution order (last wins): built-in default, config.env, environment.
    """
    env = _read_env_file(path)

    # environment variables win over the file
    env.update(
        {
            "HOME_DIR": DEFAULT_HOME,
            "DB_PATH": os.environ.get("PB_DB_PATH", env.get("DB_PATH", DEFAULT_DB_PATH)),
            "START_VIEW": os.environ.get("PB_START_VIEW", env.get("START_VIEW", DEFAULT_START_VIEW)),
        },
    )
    return env
