"""linkchase CLI — build an atom space file and chase links from the command line."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from linkchase.client import DEFAULT_NODE_TYPE, AtomSpace
from linkchase.engine.chase import UnresolvedHandleError

DEFAULT_STORE = "atomspace.json"

logger = logging.getLogger("linkchase.cli")


def _open(path: str) -> AtomSpace:
    if Path(path).exists():
        logger.debug("Loading atom space from %s", path)
        return AtomSpace.load(path)
    return AtomSpace()


def _run_chase(
    space: AtomSpace,
    handle: str,
    link_type: str,
    from_position: int,
    to_position: int,
    with_link: bool,
    first: bool,
) -> None:
    found = 0

    def emit(target: str, link_handle: str) -> bool:
        nonlocal found
        found += 1
        click.echo(f"{target}\t{link_handle}" if with_link else target)
        return first

    try:
        space.chase_with_link(handle, link_type, from_position, to_position, emit)
    except UnresolvedHandleError as exc:
        raise click.ClickException(str(exc)) from exc
    logger.debug("%d match(es) for %s from %r", found, link_type, handle)


@click.group()
@click.option(
    "--store",
    default=DEFAULT_STORE,
    envvar="LINKCHASE_STORE",
    show_default=True,
    help="Path to the atom space JSON file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log traversal details to stderr.")
@click.pass_context
def cli(ctx: click.Context, store: str, verbose: bool) -> None:
    """linkchase CLI — follow typed links through a hypergraph of atoms."""
    # All logging goes to stderr; stdout carries command output only
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["store"] = store


@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create an empty atom space file."""
    path = ctx.obj["store"]
    if Path(path).exists():
        click.echo(f"Atom space already exists at {path}")
        return
    AtomSpace().save(path)
    click.echo(f"Initialized atom space at {path}")


@cli.command()
@click.argument("handle")
@click.option("--type", "node_type", default=DEFAULT_NODE_TYPE, help="Node type.")
@click.option("--props", default=None, help="JSON properties.")
@click.pass_context
def node(ctx: click.Context, handle: str, node_type: str, props: str | None) -> None:
    """Create or update a node."""
    space = _open(ctx.obj["store"])
    properties = json.loads(props) if props else {}
    result = space.node(handle, type=node_type, **properties)
    space.save(ctx.obj["store"])
    click.echo(f"Node: {result.handle} (type={result.type})")


@cli.command()
@click.argument("members", nargs=-1, required=True)
@click.option("--type", "link_type", required=True, help="Link type.")
@click.option("--handle", default=None, help="Link handle (default: generated).")
@click.option("--props", default=None, help="JSON properties.")
@click.pass_context
def link(
    ctx: click.Context,
    members: tuple[str, ...],
    link_type: str,
    handle: str | None,
    props: str | None,
) -> None:
    """Create a link over MEMBERS, in order."""
    space = _open(ctx.obj["store"])
    try:
        result = space.link(
            list(members),
            type=link_type,
            handle=handle,
            properties=json.loads(props) if props else None,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    space.save(ctx.obj["store"])
    click.echo(f"Link: {result.handle} (type={result.type}, outgoing={result.outgoing})")


@cli.command()
@click.argument("handle")
@click.option("--type", "link_type", required=True, help="Link type to follow.")
@click.option("--with-link", is_flag=True, help="Also print the matching link handle.")
@click.option("--first", is_flag=True, help="Stop after the first match.")
@click.pass_context
def follow(ctx: click.Context, handle: str, link_type: str, with_link: bool, first: bool) -> None:
    """Print the targets of binary links whose source is HANDLE."""
    space = _open(ctx.obj["store"])
    _run_chase(space, handle, link_type, 0, 1, with_link, first)


@cli.command()
@click.argument("handle")
@click.option("--type", "link_type", required=True, help="Link type to follow backwards.")
@click.option("--with-link", is_flag=True, help="Also print the matching link handle.")
@click.option("--first", is_flag=True, help="Stop after the first match.")
@click.pass_context
def backtrack(
    ctx: click.Context, handle: str, link_type: str, with_link: bool, first: bool
) -> None:
    """Print the sources of binary links whose target is HANDLE."""
    space = _open(ctx.obj["store"])
    _run_chase(space, handle, link_type, 1, 0, with_link, first)


@cli.command()
@click.argument("handle")
@click.option("--type", "link_type", required=True, help="Link type to chase.")
@click.option("--from", "from_position", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--to", "to_position", type=click.IntRange(min=0), default=1, show_default=True)
@click.option("--with-link", is_flag=True, help="Also print the matching link handle.")
@click.option("--first", is_flag=True, help="Stop after the first match.")
@click.pass_context
def chase(
    ctx: click.Context,
    handle: str,
    link_type: str,
    from_position: int,
    to_position: int,
    with_link: bool,
    first: bool,
) -> None:
    """Print the atom at position --to of each link holding HANDLE at --from."""
    space = _open(ctx.obj["store"])
    _run_chase(space, handle, link_type, from_position, to_position, with_link, first)


@cli.command()
@click.argument("handle")
@click.option("--type", "link_type", default=None, help="Only links of this type.")
@click.pass_context
def incoming(ctx: click.Context, handle: str, link_type: str | None) -> None:
    """List links that reference HANDLE."""
    space = _open(ctx.obj["store"])
    results = space.incoming(handle, type=link_type)
    if not results:
        click.echo("No links found.")
        return
    for lk in results:
        click.echo(f"  {lk.handle}  type={lk.type}  outgoing={lk.outgoing}")


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show atom counts."""
    s = _open(ctx.obj["store"]).stats()
    click.echo(f"Nodes: {s.node_count}  Links: {s.link_count}")
    if s.nodes_by_type:
        click.echo("Nodes by type:")
        for t, c in s.nodes_by_type.items():
            click.echo(f"  {t}: {c}")
    if s.links_by_type:
        click.echo("Links by type:")
        for t, c in s.links_by_type.items():
            click.echo(f"  {t}: {c}")


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Check the atom space for dangling members."""
    result = _open(ctx.obj["store"]).validate()
    if result.valid:
        click.echo("Atom space is valid.")
        return
    click.echo("Validation errors:")
    for err in result.errors:
        click.echo(f"  ERROR: {err}")
    ctx.exit(1)


if __name__ == "__main__":
    cli()
