from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table

from config import Config
from services.errors import ConversionError
from services.models import BatchPolicy, ConversionRequest, ProgressMode, SourceFile
from services.session import ConversionSession

console = Console()

app = typer.Typer(help="Convert images between PNG, JPEG, WEBP, PDF and SVG")


def _load_sources(paths: List[Path]) -> List[SourceFile]:
    sources = []
    for path in paths:
        if not path.is_file():
            console.print(f"[red]Not a file[/red]: {path}")
            raise typer.Exit(1)
        sources.append(SourceFile.from_path(path))
    return sources


@app.command()
def convert(
    files: List[Path] = typer.Argument(..., help="Images to convert"),
    format: str = typer.Option("png", "--format", "-f", help="png, jpeg, webp, pdf or svg"),
    quality: int = typer.Option(Config.DEFAULT_QUALITY, "--quality", "-q", min=1, max=100),
    width: Optional[int] = typer.Option(None, "--width", min=1, help="Resize width (needs --height)"),
    height: Optional[int] = typer.Option(None, "--height", min=1, help="Resize height (needs --width)"),
    out_dir: Path = typer.Option(Path("."), "--out-dir", "-o", help="Directory for converted files"),
    zip_path: Optional[Path] = typer.Option(None, "--zip", help="Write one archive instead of separate files"),
    policy: BatchPolicy = typer.Option(BatchPolicy(Config.BATCH_POLICY), "--policy"),
    max_workers: Optional[int] = typer.Option(None, "--max-workers", min=1),
) -> None:
    try:
        request = ConversionRequest.build(format, width=width, height=height, quality=quality)
    except ConversionError as exc:
        console.print(f"[red]Invalid request[/red]: {exc}")
        raise typer.Exit(1) from exc

    session = ConversionSession(policy=policy, progress_mode=ProgressMode(Config.PROGRESS_MODE),
                                max_workers=max_workers)
    session.add_files(_load_sources(files))

    with Progress(TextColumn("Converting"), BarColumn(), TextColumn("{task.percentage:>3.0f}%"),
                  console=console, transient=True) as bar:
        task = bar.add_task("convert", total=100)
        session.progress.subscribe(lambda value: bar.update(task, completed=value))
        converted = session.convert(request)

    if converted is None:
        console.print(f"[red]{escape(session.error_message)}[/red]")
        raise typer.Exit(1)

    if zip_path is not None:
        zip_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            archive = session.package_all()
        except ConversionError as exc:
            console.print(f"[red]Archive failed[/red]: {escape(str(exc))}")
            raise typer.Exit(1) from exc
        zip_path.write_bytes(archive)
        console.print(f"[green]Archive written[/green]: {zip_path}")
    else:
        out_dir.mkdir(parents=True, exist_ok=True)
        for item in converted:
            (out_dir / item.name).write_bytes(item.data)

    table = Table(title="Converted files")
    table.add_column("File")
    table.add_column("Type")
    table.add_column("Bytes", justify="right")
    for item in converted:
        table.add_row(item.name, item.mimetype, str(item.size))
    console.print(table)
    for failure in session.last_failures:
        console.print(f"[yellow]Skipped[/yellow] {failure.filename}: {failure.message}")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host"),
    port: int = typer.Option(Config.PORT, "--port"),
) -> None:
    from app import app as flask_app

    flask_app.run(host=host, port=port, debug=flask_app.config["DEBUG"])


if __name__ == "__main__":
    app()
