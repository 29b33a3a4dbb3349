from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from . import config
from .models import ExportStatus, reset_engine
from .pipeline.ingest import load_calendar_items, load_json
from .pipeline.layout import preset, resolve_layout
from .pipeline.lines import NothingToExport, parse_lines
from .pipeline.naming import RenderOptions
from .pipeline.payloads import ArtistInputs
from .pipeline.render_pdf import render_pdf
from .pipeline.render_preview import write_preview
from .pipeline.run import EXPORT_KINDS, list_exports, run_export

app = typer.Typer(help="Wavering Wanderers PDF export engine")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _use_out_dir(out: Optional[Path]) -> None:
    if out:
        config.set_out_dir(out)
        reset_engine()


def _layout_overrides(layout: Optional[str]) -> dict:
    if not layout:
        return {}
    try:
        data = json.loads(layout)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"--layout must be a JSON object: {exc}") from exc
    if not isinstance(data, dict):
        raise typer.BadParameter("--layout must be a JSON object")
    return data


def _options(prefix: Optional[str], slug: Optional[str], no_date: bool) -> RenderOptions:
    return RenderOptions(prefix=prefix, slug=slug, include_date=not no_date)


@app.command()
def render(
    lines_json: Path = typer.Argument(..., help="JSON file with a list of lines"),
    name: str = typer.Option("document", "--name", help="Filename base"),
    slug: Optional[str] = typer.Option(None, "--slug", help="Slug overriding --name"),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Filename prefix (empty to drop)"),
    no_date: bool = typer.Option(False, "--no-date", help="Leave the date out of the filename"),
    layout: Optional[str] = typer.Option(None, "--layout", help="JSON layout overrides"),
    preset_name: Optional[str] = typer.Option(None, "--preset", help="Named layout preset"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    preview: bool = typer.Option(False, "--preview/--no-preview", help="Also write an HTML preview"),
) -> None:
    _use_out_dir(out)
    lines = parse_lines(load_json(lines_json))
    try:
        cfg = resolve_layout(preset(preset_name), config.load_layout_preset(), _layout_overrides(layout))
        result = render_pdf(lines, name, cfg, _options(prefix, slug, no_date))
    except NothingToExport as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    typer.echo(f"PDF: {result.path} ({result.page_count} page(s))")
    if result.plan.skipped:
        typer.echo(f"Skipped lines: {', '.join(str(i) for i in result.plan.skipped)}")
    if preview:
        html_path = write_preview(lines, result.path.with_suffix(".preview.html"), title=result.path.stem, layout_override=cfg)
        typer.echo(f"Preview: {html_path}")


@app.command()
def preview(
    lines_json: Path = typer.Argument(..., help="JSON file with a list of lines"),
    html: Path = typer.Option(..., "--html", help="Where to write the HTML preview"),
    layout: Optional[str] = typer.Option(None, "--layout", help="JSON layout overrides"),
    preset_name: Optional[str] = typer.Option(None, "--preset", help="Named layout preset"),
) -> None:
    lines = parse_lines(load_json(lines_json))
    cfg = resolve_layout(preset(preset_name), config.load_layout_preset(), _layout_overrides(layout))
    path = write_preview(lines, html, title=lines_json.stem, layout_override=cfg)
    typer.echo(f"Preview: {path}")


@app.command()
def export(
    kind: str = typer.Argument(..., help=f"One of: {', '.join(EXPORT_KINDS)}"),
    payload: Path = typer.Argument(..., help="Payload JSON (or CSV for calendar)"),
    artist: str = typer.Option("", "--artist", help="Artist name"),
    genre: str = typer.Option("", "--genre"),
    audience: str = typer.Option("", "--audience"),
    goal: str = typer.Option("", "--goal"),
    influences: str = typer.Option("", "--influences"),
    brand_words: str = typer.Option("", "--brand-words"),
    month: Optional[str] = typer.Option(None, "--month", help="Calendar month, YYYY-MM"),
    concept: Optional[int] = typer.Option(None, "--concept", help="Export a single concept (1-based)"),
    name: Optional[str] = typer.Option(None, "--name", help="Filename base"),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Filename prefix (empty to drop)"),
    no_date: bool = typer.Option(False, "--no-date", help="Leave the date out of the filename"),
    layout: Optional[str] = typer.Option(None, "--layout", help="JSON layout overrides"),
    snapshots: bool = typer.Option(False, "--snapshots", help="Render PNG snapshots of the first pages"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
) -> None:
    if kind not in EXPORT_KINDS:
        raise typer.BadParameter(f"Unknown kind {kind!r}; expected one of {', '.join(EXPORT_KINDS)}")
    if concept is not None and concept < 1:
        raise typer.BadParameter("--concept is 1-based")
    _use_out_dir(out)

    if kind == "calendar" and payload.suffix.lower() == ".csv":
        data = load_calendar_items(payload)
    else:
        data = load_json(payload)

    inputs = ArtistInputs(
        artist_name=artist,
        genre=genre,
        audience=audience,
        goal=goal,
        influences=influences,
        brand_words=brand_words,
    )
    try:
        record = run_export(
            kind,
            data,
            inputs=inputs,
            options=RenderOptions(prefix=prefix, include_date=not no_date),
            layout_override=_layout_overrides(layout),
            month=month,
            concept=concept - 1 if concept is not None else None,
            name=name,
            snapshots=snapshots,
        )
    except NothingToExport as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    typer.echo(f"{record.status.value}: {record.filename or record.slug}")
    if record.status == ExportStatus.FAILED:
        typer.echo(f"{record.fail_code}: {record.fail_detail}", err=True)
        raise typer.Exit(code=1)
    if record.used_fallback:
        typer.echo("Note: fallback content was used")


@app.command()
def history(
    limit: int = typer.Option(20, "--limit", help="Number of exports to list"),
    failed: bool = typer.Option(False, "--failed", help="Only failed exports"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
) -> None:
    _use_out_dir(out)
    records = list_exports(limit=limit, status=ExportStatus.FAILED if failed else None)
    if not records:
        typer.echo("No exports recorded")
        return
    for r in records:
        detail = r.filename if r.status == ExportStatus.READY else f"{r.fail_code}: {r.fail_detail}"
        typer.echo(f"{r.id}\t{r.created_at:%Y-%m-%d %H:%M}\t{r.kind}\t{r.status.value}\t{detail}")


if __name__ == "__main__":
    app()
