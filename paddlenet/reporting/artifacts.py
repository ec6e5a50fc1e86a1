"""Run manifest capturing what a convergence run started from."""

from __future__ import annotations

import json
import os
import platform
import time
from pathlib import Path
from typing import Mapping

from .metrics import git_sha


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    store_provenance: Mapping[str, object],
    result: Mapping[str, object] | None = None,
) -> str:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "git_sha": git_sha(),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": config,
        "store": dict(store_provenance),
        "result": dict(result or {}),
        "environment": {
            "python": platform.python_version(),
            "home": os.environ.get("PADDLENET_HOME", ""),
        },
    }
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)
