"""
Build command implementation.

Loads the content collections, renders markdown, and writes the complete
static site (listing pages, posts, archive, feed, taxonomies, standalone
pages, RSS, sitemap, search index) into the output directory.
"""

import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.command_context import BuildContext
from ..core.paths import get_system_path
from ..processors.collection_loader import load_collection
from ..processors.feeds import build_rss, build_search_index, build_sitemap
from ..processors.html_generator import HTMLGenerator, taxonomy_url
from ..processors.markdown_renderer import MarkdownRenderer
from ..processors.paginator import (
    group_by_category,
    group_by_tag,
    paginate,
    sort_by_date,
    sort_posts,
)

logger = logging.getLogger(__name__)

STYLESHEET = "inkpress.css"


def _copy_tree(src: Path, dest: Path) -> int:
    """Copy files from *src* into *dest*, overwriting existing files; returns the number copied."""
    if not src.is_dir():
        return 0
    copied = 0
    for item in src.iterdir():
        target = dest / item.name
        if item.is_dir():
            target.mkdir(parents=True, exist_ok=True)
            copied += _copy_tree(item, target)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(item, target)
            copied += 1
    return copied


def _render_collection(renderer: MarkdownRenderer, posts: List[Dict[str, Any]]) -> None:
    for post in posts:
        post['html'] = renderer.render(post['body'])
        if not post.get('description'):
            post['description'] = renderer.excerpt(post['html'])


class _SiteWriter:
    """Writes pages and remembers their URLs for the sitemap."""

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.files_written = 0
        self.sitemap: List[Any] = []

    def page(self, url: str, content: str, lastmod=None, in_sitemap: bool = True) -> None:
        HTMLGenerator.write_page(self.output_dir, url, content)
        self.files_written += 1
        if in_sitemap:
            self.sitemap.append((url, lastmod) if lastmod else url)

    def file(self, name: str, content: str) -> None:
        target = self.output_dir / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding='utf-8')
        self.files_written += 1


def _write_taxonomy(writer: _SiteWriter, generator: HTMLGenerator, kind: str,
                    groups: Dict[str, List[Dict[str, Any]]], page_size: int) -> None:
    bases: Dict[str, str] = {}
    for name, posts in groups.items():
        base = taxonomy_url(kind, name)
        if base in bases:
            logger.warning("%s '%s' and '%s' share the URL %s; the latter wins", kind, bases[base], name, base)
        bases[base] = name
        for page in paginate(posts, page_size, base):
            writer.page(page['url'], generator.render_taxonomy(kind, name, page))
    writer.page(f'/{kind}/', generator.render_taxonomy_index(kind, groups))


def run(site_dir: Optional[str] = None, include_drafts: Optional[bool] = None, clean: bool = False) -> Dict[str, Any]:
    """
    Build the static site.

    Args:
        site_dir: Site directory holding site.yaml and content/ (defaults to
            $INKPRESS_SITE_DIR or the working directory)
        include_drafts: Render draft posts; None defers to ``build.drafts``
        clean: Remove the output directory before writing

    Returns:
        Summary dict with post/page/feed counts, files written, and the output dir

    Raises:
        ValueError: If the configuration is invalid
        FrontmatterError: If a content file is malformed
    """
    logger.info("Starting site build")

    with BuildContext(site_dir=site_dir) as ctx:
        build_options = ctx.build_options
        drafts = build_options.get('drafts', False) if include_drafts is None else include_drafts
        content_dir = ctx.resolve_path('content_dir')
        output_dir = ctx.safe_output_dir()

        if clean and output_dir.exists():
            shutil.rmtree(output_dir)
            logger.info("Removed previous output %s", output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        posts = load_collection(content_dir / 'blog', 'blog', include_drafts=drafts)
        notes = load_collection(content_dir / 'feed', 'feed', include_drafts=drafts)
        pages = load_collection(content_dir / 'pages', 'pages', include_drafts=drafts)

        reserved = {'blog', 'posts', 'archive', 'feed', 'tags', 'categories', 'search', 'friends', 'message', 'assets'}
        for page in pages:
            if page['slug'] in reserved:
                raise ValueError(f"Page slug '{page['slug']}' ({page['source_path']}) clashes with a generated section")

        renderer = MarkdownRenderer(code_folding_start_lines=ctx.options.get('code_folding_start_lines', 16))
        for collection in (posts, notes, pages):
            _render_collection(renderer, collection)

        generator = HTMLGenerator(ctx.config, templates_dir=str(ctx.resolve_path('templates_dir')))
        generator.build_sidebar(posts)
        writer = _SiteWriter(output_dir)

        # Blog listing, sticky posts first; "/" mirrors page 1.
        listing = paginate(sort_posts(posts), ctx.get_page_size('post'), '/blog')
        for page in listing:
            writer.page(page['url'], generator.render_post_list(page))
        writer.page('/', generator.render_post_list(listing[0], current_path='/'))

        # Post pages link to their chronological neighbours.
        chronological = sort_by_date(posts)
        for index, post in enumerate(chronological):
            newer = chronological[index - 1] if index > 0 else None
            older = chronological[index + 1] if index + 1 < len(chronological) else None
            writer.page(post['url'], generator.render_post(post, prev_post=older, next_post=newer),
                        lastmod=max(post['date'], post['last_modified']))

        for page in paginate(chronological, ctx.get_page_size('archive'), '/archive'):
            writer.page(page['url'], generator.render_archive(page))

        if notes:
            for page in paginate(sort_posts(notes), ctx.get_page_size('feed'), '/feed'):
                writer.page(page['url'], generator.render_feed(page))

        page_size = ctx.get_page_size('post')
        _write_taxonomy(writer, generator, 'tags', group_by_tag(posts), page_size)
        _write_taxonomy(writer, generator, 'categories', group_by_category(posts), page_size)

        for page in pages:
            writer.page(page['url'], generator.render_page(page), lastmod=page['last_modified'])

        writer.page('/search/', generator.render_search())
        writer.file('search.json', build_search_index(posts))

        friends = ctx.config.get('friendship_links') or []
        if friends:
            writer.page('/friends/', generator.render_friends(friends))
        if ctx.config['comment'].get('enable'):
            writer.page('/message/', generator.render_message())

        writer.page('/404.html', generator.render_not_found(), in_sitemap=False)
        writer.file('rss.xml', build_rss(ctx.site, posts))
        writer.file('sitemap.xml', build_sitemap(ctx.site, writer.sitemap))

        stylesheet = get_system_path('static', STYLESHEET)
        if stylesheet.exists():
            (output_dir / 'assets').mkdir(parents=True, exist_ok=True)
            shutil.copyfile(stylesheet, output_dir / 'assets' / STYLESHEET)
            writer.files_written += 1

        writer.files_written += _copy_tree(ctx.resolve_path('public_dir'), output_dir)

    summary = {
        'posts': len(posts),
        'pages': len(pages),
        'feed_notes': len(notes),
        'files_written': writer.files_written,
        'output_dir': str(output_dir),
    }
    logger.info(
        "Site build completed: %d posts, %d pages, %d feed notes, %d files in %s",
        summary['posts'], summary['pages'], summary['feed_notes'], summary['files_written'], output_dir,
    )
    return summary
