"""
HTML page generation for the static site.

Pages are rendered into a single layout template (``layout.html``) that uses
``%{name}`` placeholders; the per-page fragments are built from
``string.Template`` snippets below.
"""

import datetime
import html
import logging
import re
from pathlib import Path
from string import Template
from typing import Any, Dict, List, Optional

from ..core.paths import get_system_path
from ..core.text_utils import slugify
from . import widgets
from .feeds import absolute_url
from .paginator import group_by_category, group_by_tag, group_by_year, recent_posts

logger = logging.getLogger(__name__)

LAYOUT_TEMPLATE = "layout.html"
DATE_FORMAT = "%Y-%m-%d"

_PLACEHOLDER_RE = re.compile(r"%\{(\w+)\}")

POST_CARD = Template(
    '<article class="post-card">\n'
    '  <h2><a href="$url">$title</a>$sticky</h2>\n'
    '  <div class="post-meta"><time datetime="$iso_date">$date</time>$category</div>\n'
    '  <p class="post-description">$description</p>\n'
    '  <div class="post-tags">$tags</div>\n'
    '</article>'
)
POST_ARTICLE = Template(
    '<article class="post">\n'
    '  <header class="post-header">\n'
    '    <h1 class="post-title">$title</h1>\n'
    '    <div class="post-meta"><time datetime="$iso_date">$date</time>$updated$category</div>\n'
    '    <div class="post-tags">$tags</div>\n'
    '  </header>\n'
    '  <div class="post-content">\n$body\n  </div>\n'
    '</article>\n'
    '$donate\n'
    '<nav class="post-nav">$prev_link$next_link</nav>\n'
    '$comments'
)
FEED_NOTE = Template(
    '<article class="feed-note" id="$slug">\n'
    '  <div class="entry-meta"><time datetime="$iso_date">$date</time> · $title</div>\n'
    '  <div class="feed-content">\n$body\n  </div>\n'
    '</article>'
)
FRIEND_CARD = Template(
    '<a class="friend" href="$url" target="_blank" rel="noopener noreferrer">\n'
    '  <img src="$avatar" alt="$name">\n'
    '  <strong>$name</strong>\n'
    '  <p>$description</p>\n'
    '</a>'
)
SEARCH_PAGE = Template(
    '<h1>Search</h1>\n'
    '<input id="search-input" type="search" placeholder="Search posts..." autocomplete="off">\n'
    '<ul id="search-results" class="archive-list"></ul>\n'
    '<script>\n'
    '  (function () {\n'
    '    var input = document.getElementById("search-input");\n'
    '    var list = document.getElementById("search-results");\n'
    '    fetch("$index_url").then(function (r) { return r.json(); }).then(function (posts) {\n'
    '      input.addEventListener("input", function () {\n'
    '        var q = input.value.trim().toLowerCase();\n'
    '        list.innerHTML = "";\n'
    '        if (!q) { return; }\n'
    '        posts.filter(function (p) {\n'
    '          return [p.title, p.description, p.category || ""].concat(p.tags).join(" ").toLowerCase().indexOf(q) !== -1;\n'
    '        }).forEach(function (p) {\n'
    '          var li = document.createElement("li");\n'
    '          var a = document.createElement("a");\n'
    '          a.href = p.url; a.textContent = p.title;\n'
    '          li.appendChild(a);\n'
    '          list.appendChild(li);\n'
    '        });\n'
    '      });\n'
    '    });\n'
    '  })();\n'
    '</script>'
)
MATHJAX_HEAD = (
    '<script>\n'
    '  MathJax = { tex: { inlineMath: [["$", "$"], ["\\\\(", "\\\\)"]],'
    ' displayMath: [["$$", "$$"], ["\\\\[", "\\\\]"]], processEscapes: true } };\n'
    '</script>\n'
    '<script id="MathJax-script" async src="https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"></script>'
)
MERMAID_SCRIPT = (
    '<script type="module">\n'
    "  import mermaid from 'https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.esm.min.mjs';\n"
    '  mermaid.initialize({ startOnLoad: true });\n'
    '</script>'
)


def taxonomy_url(kind: str, name: str) -> str:
    """Return the listing root for a tag or category, e.g. ``/tags/python``."""
    return f"/{kind}/{slugify(name, fallback='untitled')}"


def _fmt_date(value: datetime.datetime) -> str:
    return value.strftime(DATE_FORMAT)


def _esc(value: Any) -> str:
    return html.escape(str(value if value is not None else ''), quote=True)


class HTMLGenerator:
    """Renders site pages from post dicts and the site configuration."""

    def __init__(self, config: Dict[str, Any], templates_dir: Optional[str] = None):
        """Prepare the generator; *templates_dir* holds optional site overrides."""
        self.config = config
        self.site = config['site']
        self.options = config['config']
        self.templates_dir = Path(templates_dir) if templates_dir else None
        self.layout = self._load_template(LAYOUT_TEMPLATE)
        self.sidebar = ''

    def _load_template(self, name: str) -> str:
        """Load *name* from the site overrides, then the bundled templates, then a basic fallback."""
        candidates = []
        if self.templates_dir is not None:
            candidates.append(self.templates_dir / name)
        candidates.append(get_system_path('templates', name))

        for candidate in candidates:
            if candidate.exists():
                logger.debug("Using template %s", candidate)
                return candidate.read_text(encoding='utf-8')

        logger.warning("Template %s not found; using the basic built-in layout", name)
        return self._basic_layout()

    @staticmethod
    def _basic_layout() -> str:
        return (
            "<!DOCTYPE html>\n"
            "<html lang=\"%{lang}\">\n"
            "<head>\n"
            "<meta charset=\"UTF-8\">\n"
            "<title>%{title}</title>\n"
            "%{head}\n"
            "</head>\n"
            "<body>\n"
            "<nav><ul>%{navigation}</ul></nav>\n"
            "%{content}\n"
            "%{scripts}\n"
            "</body>\n"
            "</html>\n"
        )

    @staticmethod
    def fill(template: str, values: Dict[str, str]) -> str:
        """Substitute ``%{name}`` placeholders in a single pass; unknown names are left as-is."""
        return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)

    # ------------------------------------------------------------------
    # Layout and shared fragments
    # ------------------------------------------------------------------

    def build_sidebar(self, posts: List[Dict[str, Any]]) -> str:
        """Build the recent posts / categories / tags widgets shared by every page."""
        parts: List[str] = []
        recent = recent_posts(posts, self.site['recent_blog_size'])
        if recent:
            items = '\n'.join(f'<li><a href="{_esc(p["url"])}">{_esc(p["title"])}</a></li>' for p in recent)
            parts.append(f'<div class="widget widget-recent">\n<h3>Recent Posts</h3>\n<ul>\n{items}\n</ul>\n</div>')

        categories = group_by_category(posts)
        if categories:
            items = '\n'.join(
                f'<li><a href="{taxonomy_url("categories", name)}/1/">{_esc(name)}</a> ({len(group)})</li>'
                for name, group in categories.items()
            )
            parts.append(f'<div class="widget widget-categories">\n<h3>Categories</h3>\n<ul>\n{items}\n</ul>\n</div>')

        tags = group_by_tag(posts)
        if tags:
            items = '\n'.join(
                f'<a class="tag" href="{taxonomy_url("tags", name)}/1/">#{_esc(name)} ({len(group)})</a>'
                for name, group in tags.items()
            )
            parts.append(f'<div class="widget widget-tags">\n<h3>Tags</h3>\n{items}\n</div>')

        self.sidebar = '\n'.join(parts)
        return self.sidebar

    def render_layout(self, title: str, content: str, current_path: str, description: Optional[str] = None) -> str:
        """Wrap *content* in the site layout."""
        site_title = self.site['title']
        page_title = site_title if not title or title == site_title else f"{title} | {site_title}"

        head = [widgets.analytics_snippet(self.options)]
        scripts = []
        if 'class="math ' in content:
            head.append(MATHJAX_HEAD)
        if 'class="mermaid"' in content:
            scripts.append(MERMAID_SCRIPT)

        beian = self.site.get('beian')
        values = {
            'lang': _esc(self.options.get('lang', 'en')),
            'title': _esc(page_title),
            'description': _esc(description or self.site.get('description', '')),
            'author': _esc(self.site.get('author', '')),
            'favicon': _esc(self.site.get('favicon', '')),
            'canonical': _esc(absolute_url(self.site['url'], current_path)),
            'site_title': _esc(site_title),
            'motto': _esc(self.site.get('motto', '')),
            'avatar': _esc(self.site.get('avatar', '')),
            'navigation': widgets.navigation_html(self.config.get('categories') or [], current_path),
            'info_links': widgets.info_links_html(self.config.get('info_links') or []),
            'sidebar': self.sidebar,
            'content': content,
            'year': str(datetime.date.today().year),
            'beian': f'<p class="beian"><a href="https://beian.miit.gov.cn/" target="_blank">{_esc(beian)}</a></p>' if beian else '',
            'counter': widgets.busuanzi_counter(self.options),
            'head': '\n'.join(part for part in head if part),
            'scripts': '\n'.join(scripts),
        }
        return self.fill(self.layout, values)

    def _tags_html(self, post: Dict[str, Any]) -> str:
        return ' '.join(
            f'<a class="tag" href="{taxonomy_url("tags", tag)}/1/">#{_esc(tag)}</a>'
            for tag in post.get('tags') or []
        )

    def _category_html(self, post: Dict[str, Any]) -> str:
        if not post.get('category'):
            return ''
        href = f'{taxonomy_url("categories", post["category"])}/1/'
        return f' · <a class="category" href="{href}">{_esc(post["category"])}</a>'

    def pagination_html(self, page: Dict[str, Any]) -> str:
        """Render prev/next links and the numbered page bar for a pagination descriptor."""
        if page['total_pages'] <= 1:
            return ''
        parts = ['<nav class="pagination">']
        if page['prev_url']:
            parts.append(f'<a class="prev" href="{page["prev_url"]}">&laquo; Prev</a>')
        for number in page['page_numbers']:
            if number is None:
                parts.append('<span class="gap">&hellip;</span>')
            elif number == page['current_page']:
                parts.append(f'<span class="current">{number}</span>')
            else:
                parts.append(f'<a href="{page["base_url"]}/{number}/">{number}</a>')
        if page['next_url']:
            parts.append(f'<a class="next" href="{page["next_url"]}">Next &raquo;</a>')
        parts.append('</nav>')
        return '\n'.join(parts)

    def _post_cards(self, posts: List[Dict[str, Any]]) -> str:
        if not posts:
            return '<p class="no-entries">No posts yet.</p>'
        return '\n'.join(
            POST_CARD.substitute(
                url=_esc(post['url']),
                title=_esc(post['title']),
                sticky=' <span class="badge">Pinned</span>' if post.get('sticky') else '',
                iso_date=post['date'].isoformat(),
                date=_fmt_date(post['date']),
                category=self._category_html(post),
                description=_esc(post.get('description') or ''),
                tags=self._tags_html(post),
            )
            for post in posts
        )

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def render_post_list(self, page: Dict[str, Any], heading: Optional[str] = None, current_path: Optional[str] = None) -> str:
        """Render a blog listing page from a pagination descriptor."""
        content = '\n'.join(part for part in (
            f'<h1 class="page-heading">{_esc(heading)}</h1>' if heading else '',
            self._post_cards(page['items']),
            self.pagination_html(page),
        ) if part)
        title = heading or 'Blog'
        if page['current_page'] > 1:
            title = f"{title} - Page {page['current_page']}"
        return self.render_layout(title, content, current_path or page['url'])

    def render_post(self, post: Dict[str, Any], prev_post: Optional[Dict[str, Any]] = None,
                    next_post: Optional[Dict[str, Any]] = None) -> str:
        """Render a single blog post page."""
        updated = ''
        if post.get('last_modified') and post['last_modified'].date() > post['date'].date():
            updated = f' · Updated <time>{_fmt_date(post["last_modified"])}</time>'
        prev_link = (
            f'<a class="prev" href="{_esc(prev_post["url"])}">&laquo; {_esc(prev_post["title"])}</a>'
            if prev_post else '<span></span>'
        )
        next_link = (
            f'<a class="next" href="{_esc(next_post["url"])}">{_esc(next_post["title"])} &raquo;</a>'
            if next_post else '<span></span>'
        )
        content = POST_ARTICLE.substitute(
            title=_esc(post['title']),
            iso_date=post['date'].isoformat(),
            date=_fmt_date(post['date']),
            updated=updated,
            category=self._category_html(post),
            tags=self._tags_html(post),
            body=post.get('html') or '',
            donate=widgets.donate_snippet(self.config.get('donate') or {}),
            prev_link=prev_link,
            next_link=next_link,
            comments=widgets.comment_snippet(self.config['comment'], post['url']),
        )
        return self.render_layout(post['title'], content, post['url'], post.get('description'))

    def render_archive(self, page: Dict[str, Any]) -> str:
        """Render an archive page: the page's posts grouped by year."""
        parts = ['<h1 class="page-heading">Archive</h1>']
        if not page['items']:
            parts.append('<p class="no-entries">No posts yet.</p>')
        for year, posts in group_by_year(page['items']):
            items = '\n'.join(
                f'<li><time>{_fmt_date(p["date"])}</time><a href="{_esc(p["url"])}">{_esc(p["title"])}</a></li>'
                for p in posts
            )
            parts.append(f'<section class="archive-year">\n<h2>{year}</h2>\n<ul class="archive-list">\n{items}\n</ul>\n</section>')
        parts.append(self.pagination_html(page))
        title = 'Archive' if page['current_page'] == 1 else f"Archive - Page {page['current_page']}"
        return self.render_layout(title, '\n'.join(p for p in parts if p), page['url'])

    def render_feed(self, page: Dict[str, Any]) -> str:
        """Render a feed page of short notes shown inline."""
        notes = '\n'.join(
            FEED_NOTE.substitute(
                slug=_esc(note['slug']),
                iso_date=note['date'].isoformat(),
                date=_fmt_date(note['date']),
                title=_esc(note['title']),
                body=note.get('html') or '',
            )
            for note in page['items']
        ) or '<p class="no-entries">Nothing here yet.</p>'
        content = f'<h1 class="page-heading">Feed</h1>\n{notes}\n{self.pagination_html(page)}'
        title = 'Feed' if page['current_page'] == 1 else f"Feed - Page {page['current_page']}"
        return self.render_layout(title, content, page['url'])

    def render_taxonomy(self, kind: str, name: str, page: Dict[str, Any]) -> str:
        """Render one listing page for a tag (``kind='tags'``) or category (``kind='categories'``)."""
        label = 'Tag' if kind == 'tags' else 'Category'
        return self.render_post_list(page, heading=f"{label}: {name}")

    def render_taxonomy_index(self, kind: str, groups: Dict[str, List[Dict[str, Any]]]) -> str:
        """Render the overview of all tags or categories with post counts."""
        label = 'Tags' if kind == 'tags' else 'Categories'
        items = '\n'.join(
            f'<li><a href="{taxonomy_url(kind, name)}/1/">{_esc(name)}</a> ({len(posts)})</li>'
            for name, posts in groups.items()
        ) or '<li class="no-entries">None yet.</li>'
        content = f'<h1 class="page-heading">{label}</h1>\n<ul class="taxonomy-list">\n{items}\n</ul>'
        return self.render_layout(label, content, f'/{kind}/')

    def render_page(self, page: Dict[str, Any]) -> str:
        """Render a standalone content page such as /about/."""
        content = (
            f'<article class="page">\n<h1 class="page-heading">{_esc(page["title"])}</h1>\n'
            f'{page.get("html") or ""}\n</article>'
        )
        return self.render_layout(page['title'], content, page['url'], page.get('description'))

    def render_search(self, index_url: str = '/search.json') -> str:
        return self.render_layout('Search', SEARCH_PAGE.substitute(index_url=index_url), '/search/')

    def render_friends(self, links: List[Dict[str, Any]]) -> str:
        cards = '\n'.join(
            FRIEND_CARD.substitute(
                url=_esc(link.get('url')),
                avatar=_esc(link.get('avatar')),
                name=_esc(link.get('name')),
                description=_esc(link.get('description')),
            )
            for link in links
        )
        content = f'<h1 class="page-heading">Friends</h1>\n<div class="friends">\n{cards}\n</div>'
        content += '\n' + widgets.comment_snippet(self.config['comment'], '/friends/')
        return self.render_layout('Friends', content, '/friends/')

    def render_message(self) -> str:
        """Render the guestbook page; only meaningful when comments are enabled."""
        content = (
            '<h1 class="page-heading">Message</h1>\n'
            + widgets.comment_snippet(self.config['comment'], '/message/')
        )
        return self.render_layout('Message', content, '/message/')

    def render_not_found(self) -> str:
        content = (
            '<h1 class="page-heading">404</h1>\n'
            '<p>The page you are looking for does not exist. <a href="/">Back home</a></p>'
        )
        return self.render_layout('Page not found', content, '/404.html')

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    @staticmethod
    def write_page(output_dir, url: str, content: str) -> Path:
        """Write *content* for *url*: ``/a/b/`` becomes ``a/b/index.html``, ``/x.html`` stays a file."""
        relative = url.strip('/')
        target = Path(output_dir)
        if relative:
            target = target.joinpath(*relative.split('/'))
        if not relative or url.endswith('/'):
            target = target / 'index.html'
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8') as f:
            f.write(content)
        logger.debug("Wrote %s", target)
        return target


__all__ = [
    "HTMLGenerator",
    "taxonomy_url",
]
