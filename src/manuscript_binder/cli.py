"""CLI for manuscript-binder (inspect and restructure a project file)."""

import json
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from manuscript_binder.binder import Binder
from manuscript_binder.config import PROJECT_FILENAME, resolve_data_directory
from manuscript_binder.core.persistence.snapshot import read_snapshot, write_snapshot
from manuscript_binder.errors import BinderError
from manuscript_binder.logging_config import configure_logging
from manuscript_binder.models.item import ItemKind, MovePosition

app = typer.Typer(help="Manuscript binder: organize and restructure your manuscript tree.")

# Default project location (first existing data dir)
_DEFAULT_DATA_DIR = resolve_data_directory()

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Directory holding the project file"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _project_path(data_dir: Path | None) -> Path:
    return (data_dir or _DEFAULT_DATA_DIR) / PROJECT_FILENAME


def _open_project(data_dir: Path | None, *, repair: bool = False) -> Binder:
    """Load the project, raising typer.Exit if it doesn't exist or is invalid."""
    path = _project_path(data_dir)
    if not path.exists():
        logger.error("Project file not found: {}. Run 'init' first.", path)
        raise typer.Exit(1)
    try:
        return Binder.from_snapshot(read_snapshot(path), repair=repair)
    except BinderError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e


def _save_project(binder: Binder, data_dir: Path | None) -> None:
    write_snapshot(_project_path(data_dir), binder.to_snapshot())


def _fail(error: BinderError) -> typer.Exit:
    logger.error("{}", error)
    return typer.Exit(1)


@app.command()
def init(
    data_dir: DataDirOption = None,
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing project"),
) -> None:
    """Create an empty project with Draft, Research and Trash folders."""
    path = _project_path(data_dir)
    if path.exists() and not force:
        logger.error("Project already exists: {}", path)
        raise typer.Exit(1)
    path.parent.mkdir(parents=True, exist_ok=True)
    binder = Binder()
    write_snapshot(path, binder.to_snapshot())
    typer.echo(f"Created project at {path}")


@app.command()
def show(
    root: Annotated[
        str | None,
        typer.Option("--root", "-r", help="Item to start from (default: all roots)"),
    ] = None,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max depth levels to render"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Print the binder (or one subtree) as a markdown outline."""
    binder = _open_project(data_dir)
    if root is not None and binder.get(root) is None:
        typer.echo(f"Item '{root}' not found.")
        raise typer.Exit(1)
    for item_id in [root] if root else binder.visible_roots():
        typer.echo(binder.render_markdown(item_id, max_depth=max_depth), nl=False)


@app.command()
def add(
    parent: str = typer.Argument(..., help="Parent item id"),
    title: str = typer.Argument(..., help="Title of the new item"),
    kind: ItemKind = typer.Option(ItemKind.DOCUMENT, "--kind", "-k", help="Item kind"),
    data_dir: DataDirOption = None,
) -> None:
    """Add an empty item under a parent."""
    binder = _open_project(data_dir)
    try:
        new_id = binder.create(parent, kind, title)
    except BinderError as e:
        raise _fail(e) from e
    _save_project(binder, data_dir)
    typer.echo(new_id)


@app.command()
def move(
    item: str = typer.Argument(..., help="Item to move"),
    target: str = typer.Argument(..., help="Drop target"),
    position: MovePosition = typer.Option(
        MovePosition.INSIDE, "--position", "-p", help="Where to drop relative to the target"
    ),
    data_dir: DataDirOption = None,
) -> None:
    """Move an item before, after or inside another item."""
    binder = _open_project(data_dir)
    try:
        parent = binder.move(item, target, position)
    except BinderError as e:
        raise _fail(e) from e
    _save_project(binder, data_dir)
    typer.echo(f"Moved {item} into {parent}")


@app.command()
def delete(
    item: str = typer.Argument(..., help="Item to move to the trash"),
    data_dir: DataDirOption = None,
) -> None:
    """Move an item to the trash."""
    binder = _open_project(data_dir)
    try:
        binder.delete(item)
    except BinderError as e:
        raise _fail(e) from e
    _save_project(binder, data_dir)
    typer.echo(f"Moved {item} to trash")


@app.command(name="import")
def import_cmd(
    parent: str = typer.Argument(..., help="Folder receiving the new documents"),
    source: Path = typer.Argument(..., help="Text file to split"),
    separator: str = typer.Option("#", "--separator", "-s", help="Section separator"),
    data_dir: DataDirOption = None,
) -> None:
    """Split a text file into one document per section."""
    if not source.exists():
        logger.error("Source file not found: {}", source)
        raise typer.Exit(1)
    binder = _open_project(data_dir)
    try:
        new_ids = binder.import_and_split(parent, source.read_text(encoding="utf-8"), separator)
    except (BinderError, ValueError) as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    _save_project(binder, data_dir)
    typer.echo(f"Imported {len(new_ids)} documents")


@app.command()
def merge(
    target: str = typer.Argument(..., help="Item receiving the merged content"),
    sources: list[str] = typer.Argument(..., help="Items to merge into the target"),
    data_dir: DataDirOption = None,
) -> None:
    """Merge items into a target, deleting the sources."""
    binder = _open_project(data_dir)
    try:
        removed = binder.merge(target, sources)
    except BinderError as e:
        raise _fail(e) from e
    _save_project(binder, data_dir)
    typer.echo(f"Merged {len(removed)} items into {target}")


@app.command(name="commit-order")
def commit_order(
    parent: str = typer.Argument(..., help="Folder whose cards to reorder"),
    data_dir: DataDirOption = None,
) -> None:
    """Reorder a folder's children by their freeform card positions."""
    binder = _open_project(data_dir)
    try:
        order = binder.commit_freeform_order(parent)
    except BinderError as e:
        raise _fail(e) from e
    _save_project(binder, data_dir)
    typer.echo(" ".join(order))


@app.command()
def search(
    term: str = typer.Argument(..., help="Title text to look for"),
    data_dir: DataDirOption = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Show only the binder paths leading to matching titles."""
    binder = _open_project(data_dir)
    binder.set_search_term(term)

    lines: list[tuple[int, str, str]] = []

    def walk(item_id: str, depth: int) -> None:
        item = binder.get(item_id)
        if item is None:
            return
        lines.append((depth, item.id, item.title))
        for child_id in binder.visible_children(item_id):
            walk(child_id, depth + 1)

    for root_id in binder.visible_roots():
        walk(root_id, 0)

    if output_json:
        data = {
            "term": term,
            "results": [{"id": i, "title": t, "depth": d} for d, i, t in lines],
        }
        typer.echo(json.dumps(data, indent=2))
    else:
        for depth, item_id, title in lines:
            typer.echo(f"{'    ' * depth}- {title}  [id={item_id}]")


@app.command()
def check(
    data_dir: DataDirOption = None,
    repair: bool = typer.Option(False, "--repair", help="Fix problems and save"),
) -> None:
    """Validate the project file's tree integrity."""
    binder = _open_project(data_dir, repair=repair)
    problems = binder.validate()
    if problems:
        for problem in problems:
            typer.echo(f"  {problem}")
        raise typer.Exit(1)
    if repair:
        _save_project(binder, data_dir)
    typer.echo("Project is consistent.")
