"""
Provenance block attached to every exported run.

It records which code produced the histograms (package version and,
inside a git checkout, the commit), which generator settings were read,
where the events came from and how the tool was invoked.
"""

from __future__ import annotations

import hashlib
import json
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


def settings_digest(path: str | Path) -> str:
    """SHA-256 of a command file. These are small, so read in one go."""
    return hashlib.sha256(Path(path).read_bytes()).hexdigest()


def _checkout_root() -> Optional[Path]:
    here = Path(__file__).resolve().parent
    return next((d for d in [here, *here.parents] if (d / ".git").exists()), None)


def _commit(root: Optional[Path]) -> str:
    """Commit of the checkout, '' when not running from git."""
    if root is None:
        return ""
    try:
        out = subprocess.run(
            ["git", "describe", "--always", "--dirty"],
            cwd=str(root),
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return ""
    return out.stdout.strip()


def build_provenance(
    *,
    tool: str,
    tool_version: str,
    run_config: Dict[str, Any],
    settings_path: str | Path | None = None,
    event_source: str = "",
    argv: Optional[list[str]] = None,
) -> Dict[str, Any]:
    settings = {"path": "", "sha256": ""}
    if settings_path is not None:
        settings = {"path": str(settings_path), "sha256": settings_digest(settings_path)}
    created = datetime.now(timezone.utc).replace(microsecond=0)
    return {
        "tool": tool,
        "tool_version": tool_version,
        "commit": _commit(_checkout_root()),
        "created_utc": created.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "settings": settings,
        "event_source": event_source,
        "run_config": run_config,
        "argv": list(argv or []),
    }


def stable_json_dumps(obj: Any) -> str:
    """Key-sorted compact JSON, so identical runs give identical metadata."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
