from __future__ import annotations

import logging
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from adapters.excalidraw.url_encoder import build_share_url
from app.config import AppSettings, load_settings
from app.editor_wiring import build_genogram_repository, build_renderer, build_scene_repository
from domain.errors import GenogramError
from domain.genogram import Genogram
from domain.services.render_genogram_to_excalidraw import scene_bounds

app = typer.Typer(no_args_is_help=True)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    try:
        ctx.obj = load_settings(config)
    except (FileNotFoundError, ValidationError, yaml.YAMLError) as exc:
        console.print(f"[red]Invalid settings:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _load(settings: AppSettings, input_path: Path) -> Genogram:
    if not input_path.exists():
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1)
    repository = build_genogram_repository(settings)
    try:
        return repository.load(input_path)
    except GenogramError as exc:
        console.print(f"[red]Invalid genogram:[/] {exc}")
        raise typer.Exit(code=1) from exc


@app.command("validate")
def validate(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="Genogram JSON file to validate."),
) -> None:
    genogram = _load(ctx.obj, input_path)
    table = Table(title=str(input_path))
    table.add_column("Entity")
    table.add_column("Count", justify="right")
    table.add_row("people", str(len(genogram.people)))
    table.add_row("relationships", str(len(genogram.relationships)))
    console.print(table)

    dangling = genogram.dangling_relationships()
    for relationship in dangling:
        missing = [pid for pid in relationship.people if pid not in genogram.people]
        console.print(
            f"[yellow]Relationship {relationship.id} references missing people:[/] "
            + ", ".join(missing)
        )
    console.print(f"[green]Valid genogram:[/] {input_path}")


@app.command("render")
def render(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="Genogram JSON file to render."),
    output: Path | None = typer.Option(
        None, help="Excalidraw scene to write (defaults to <export.output_dir>/<name>.excalidraw)."
    ),
    url: bool = typer.Option(False, "--url", help="Print an Excalidraw share link instead."),
) -> None:
    settings: AppSettings = ctx.obj
    genogram = _load(settings, input_path)
    document = build_renderer(settings).render(genogram, window=scene_bounds(genogram))

    if url:
        share_url = build_share_url(document, settings.export.excalidraw_base_url)
        console.print(share_url, soft_wrap=True)
        return

    target_path = output or settings.export.output_dir / f"{input_path.stem}.excalidraw"
    build_scene_repository(settings).save(document, target_path)
    console.print(f"[green]Wrote[/] {target_path}")


@app.command("normalize")
def normalize(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="Genogram JSON file to rewrite."),
    output: Path | None = typer.Option(None, help="Target file (defaults to overwriting input)."),
) -> None:
    settings: AppSettings = ctx.obj
    genogram = _load(settings, input_path)
    target_path = output or input_path
    build_genogram_repository(settings).save(genogram, target_path)
    console.print(f"[green]Wrote[/] {target_path}")


if __name__ == "__main__":
    app()
