from __future__ import annotations

from pathlib import Path
from typing import Iterable

from . import config
from .models import ExportArtifact, ExportRecord, get_session


ARTIFACT_SUFFIXES = {
    "pdf": ".pdf",
    "preview_html": ".preview.html",
    "lines_json": ".lines.json",
}


def export_dir(base_dir: Path | None = None) -> Path:
    path = base_dir or config.OUT_DIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def artifact_path(stem: str, artifact_type: str, base_dir: Path | None = None) -> Path:
    """Map an artifact type to its file next to the exported PDF.

    ``snapshot_N`` types become ``{stem}_pN.png`` (1-based page number).
    """
    if artifact_type.startswith("snapshot_"):
        page = int(artifact_type.split("_", 1)[1])
        return export_dir(base_dir) / f"{stem}_p{page}.png"
    return export_dir(base_dir) / f"{stem}{ARTIFACT_SUFFIXES[artifact_type]}"


def _relative(path: Path) -> str:
    try:
        return str(path.relative_to(config.OUT_DIR))
    except ValueError:
        return str(path)


def record_artifacts(record: ExportRecord, artifacts: Iterable[tuple[str, Path]]) -> None:
    with get_session() as session:
        for artifact_type, path in artifacts:
            session.add(
                ExportArtifact(
                    export_id=record.id,
                    type=artifact_type,
                    path=_relative(path),
                )
            )
        session.commit()
