from __future__ import annotations

import importlib
from typing import Any, Dict, List

from .io import available_formats

_REQUIRED = [("numpy", "numpy"), ("particle", "particle (pdg names)")]
_OPTIONAL = [("pyarrow", "pyarrow (parquet)"), ("pythia8mc", "pythia8mc (live generation)")]


def _probe(module: str) -> tuple[bool, str]:
    try:
        mod = importlib.import_module(module)
    except ImportError as e:
        return False, str(e)
    return True, str(getattr(mod, "__version__", "installed"))


def doctor_report() -> Dict[str, Any]:
    checks: List[Dict[str, Any]] = []

    for module, label in _REQUIRED:
        ok, detail = _probe(module)
        checks.append({"name": label, "ok": ok, "detail": detail})

    for module, label in _OPTIONAL:
        ok, detail = _probe(module)
        checks.append({"name": label, "ok": True, "detail": detail if ok else "not installed (optional)"})

    readers = ", ".join(available_formats("reader"))
    writers = ", ".join(available_formats("writer"))
    checks.append({"name": "formats", "ok": True, "detail": f"events: {readers}; histograms: {writers}"})

    ok_all = all(c["ok"] for c in checks)
    summary = "stringfrag doctor: OK" if ok_all else "stringfrag doctor: FAIL"

    return {"summary": summary, "checks": checks}
