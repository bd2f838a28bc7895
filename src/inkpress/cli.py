"""Command-line entry point for inkpress."""

from __future__ import annotations

import logging
import sys

import click

from . import status as site_status
from .commands import build as build_cmd
from .commands import clean as clean_cmd
from .commands import new_post as new_post_cmd
from .processors.collection_loader import COLLECTIONS

# Setup logging early so submodules inherit sane defaults
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@click.group()
@click.option(
    "--site",
    "site_dir",
    default=None,
    help="Site directory holding site.yaml and content/ (defaults to $INKPRESS_SITE_DIR or the current directory)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, site_dir: str | None, verbose: bool) -> None:
    """inkpress - static blog generator for markdown posts."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj["site_dir"] = site_dir


@cli.command("build")
@click.option("--drafts/--no-drafts", default=None, help="Include draft posts (default: build.drafts in site.yaml)")
@click.option("--clean", "clean_first", is_flag=True, help="Remove the output directory before building")
@click.pass_context
def build(ctx: click.Context, drafts: bool | None, clean_first: bool) -> None:
    """Render the site into the output directory."""
    try:
        summary = build_cmd.run(ctx.obj["site_dir"], include_drafts=drafts, clean=clean_first)
        click.echo(
            f"✅ Built {summary['posts']} posts, {summary['pages']} pages and "
            f"{summary['feed_notes']} feed notes into {summary['output_dir']}"
        )
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Build failed: {exc}", err=True)
        sys.exit(1)


@cli.command("new")
@click.argument("title")
@click.option(
    "--collection",
    type=click.Choice(list(COLLECTIONS)),
    default="blog",
    show_default=True,
    help="Content collection to create the entry in",
)
@click.option("--category", help="Post category")
@click.option("--tag", "tags", multiple=True, help="Tag for the post. Can be specified multiple times.")
@click.option("--sticky", type=int, default=0, help="Sticky priority; higher values are pinned first")
@click.option("--draft", is_flag=True, help="Mark the post as a draft")
@click.pass_context
def new(
    ctx: click.Context,
    title: str,
    collection: str,
    category: str | None,
    tags: tuple[str, ...],
    sticky: int,
    draft: bool,
) -> None:
    """Scaffold a new markdown file with frontmatter."""
    try:
        path = new_post_cmd.run(
            title,
            site_dir=ctx.obj["site_dir"],
            collection=collection,
            category=category,
            tags=list(tags) or None,
            sticky=sticky,
            draft=draft,
        )
        click.echo(f"✅ Created {path}")
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Could not create entry: {exc}", err=True)
        sys.exit(1)


@cli.command("clean")
@click.pass_context
def clean(ctx: click.Context) -> None:
    """Remove the generated output directory."""
    try:
        if clean_cmd.run(ctx.obj["site_dir"]):
            click.echo("✅ Output directory removed")
        else:
            click.echo("Nothing to clean")
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Clean failed: {exc}", err=True)
        sys.exit(1)


@cli.command("status")
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show site configuration and content status."""
    info = site_status(ctx.obj["site_dir"])
    if info.get("config_path"):
        click.echo(f"📄 Config file: {info['config_path']}")

    if not info.get("valid"):
        message = info.get("error") or "see the log output above"
        click.echo(f"❌ Configuration validation failed: {message}", err=True)
        sys.exit(1)

    click.echo("✅ Configuration is valid")
    click.echo(f"📰 Site: {info['site_title']}")
    click.echo(f"📝 Posts: {info['posts']} (drafts: {info['drafts']})")
    click.echo(f"💡 Feed notes: {info['feed_notes']}")
    click.echo(f"📄 Pages: {info['pages']}")
    click.echo(f"📦 Output: {info['output_dir']} ({'built' if info['built'] else 'not built yet'})")


if __name__ == "__main__":  # pragma: no cover - script entry
    cli()
