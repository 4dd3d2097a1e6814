"""
Stage-indexed artifact directory.

Every stage writes exactly one JSON document::

    <run_dir>/
    ├── 1-taxonomy/1-taxonomy.json
    ├── 2-indexer/2-indexer.json
    ├── ...
    └── 7-audit/7-audit.json

Documents are UTF-8 with sorted keys, 2-space indent and a trailing newline,
so identical payloads are byte-identical on disk. Loading returns a
``Result``: an absent file is ``Err(MissingInputError)``, one that does not
parse is ``Err(MalformedArtifactError)``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from trustdebt.core.errors import MalformedArtifactError, MissingInputError
from trustdebt.core.result import Err, Ok, Result
from trustdebt.framework.logging import get_logger

log = get_logger(__name__)


def artifact_dirname(index: int, name: str) -> str:
    return f"{index}-{name}"


def encode_artifact(payload: Any) -> str:
    return json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False) + "\n"


class ArtifactStore:
    """Reads and writes the per-stage JSON documents of one run directory."""

    def __init__(self, run_dir: str | Path) -> None:
        self.run_dir = Path(run_dir)

    def path_for(self, index: int, name: str) -> Path:
        dirname = artifact_dirname(index, name)
        return self.run_dir / dirname / f"{dirname}.json"

    def write(self, index: int, name: str, payload: Any) -> Path:
        path = self.path_for(index, name)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(encode_artifact(payload))
        log.debug("artifact.written", stage=name, path=str(path))
        return path

    def discard(self, index: int, name: str) -> bool:
        """Remove the artifact of a stage, if present."""
        path = self.path_for(index, name)
        if path.is_file():
            path.unlink()
            log.info("artifact.discarded", stage=name, path=str(path))
            return True
        return False

    def find(self, name: str) -> Path | None:
        """Path of the artifact for stage ``name`` regardless of its index."""
        if not self.run_dir.is_dir():
            return None
        for candidate in sorted(self.run_dir.iterdir()):
            prefix, _, stage = candidate.name.partition("-")
            if candidate.is_dir() and prefix.isdigit() and stage == name:
                path = candidate / f"{candidate.name}.json"
                if path.is_file():
                    return path
        return None

    def exists(self, name: str) -> bool:
        return self.find(name) is not None

    def load(self, name: str) -> Result[dict[str, Any]]:
        path = self.find(name)
        if path is None:
            return Err(MissingInputError(f"No artifact for stage '{name}' in {self.run_dir}").with_context(artifact=name))
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            log.warning("artifact.malformed", stage=name, path=str(path), error=str(e))
            return Err(
                MalformedArtifactError(f"Artifact for stage '{name}' cannot be parsed: {e}", cause=e).with_context(
                    artifact=name
                )
            )
        if not isinstance(payload, dict):
            return Err(
                MalformedArtifactError(
                    f"Artifact for stage '{name}' is a {type(payload).__name__}, expected an object"
                ).with_context(artifact=name)
            )
        return Ok(payload)

    def stages(self) -> list[str]:
        """Stage names with an artifact present, in index order."""
        if not self.run_dir.is_dir():
            return []
        found = []
        for candidate in self.run_dir.iterdir():
            prefix, _, stage = candidate.name.partition("-")
            if candidate.is_dir() and prefix.isdigit() and stage:
                found.append((int(prefix), stage))
        return [stage for _, stage in sorted(found)]

    def __repr__(self) -> str:
        return f"ArtifactStore({str(self.run_dir)!r})"
