import sys
from pathlib import Path
from typing import Optional


def _resolved_path(path_value: str) -> Optional[Path]:
    try:
        return Path(path_value).resolve()
    except (OSError, RuntimeError, TypeError, ValueError):
        return None


def _prefer_repo_src() -> None:
    """Import helixforge from this checkout even when another copy is installed."""
    src_dir = (Path(__file__).resolve().parents[1] / "src").resolve()
    if not src_dir.is_dir():
        return

    sys.path[:] = [entry for entry in sys.path if _resolved_path(entry) != src_dir]
    sys.path.insert(0, str(src_dir))


_prefer_repo_src()
