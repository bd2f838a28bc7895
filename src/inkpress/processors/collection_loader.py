"""
Load markdown/MDX content collections from disk.

Each file starts with a YAML frontmatter block delimited by ``---`` lines.
Files are turned into post dicts carrying the normalized frontmatter fields
plus the raw markdown body; rendering happens later in the build.
"""

import datetime
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..core.text_utils import slugify

logger = logging.getLogger(__name__)

CONTENT_SUFFIXES = ('.md', '.mdx', '.markdown')
COLLECTIONS = ('blog', 'feed', 'pages')

_FENCE_RE = re.compile(r"^\s*(`{3,}|~{3,})")
_MDX_STATEMENT_RE = re.compile(r"^(import|export)\s")


class FrontmatterError(ValueError):
    """Raised when a content file has missing or malformed frontmatter."""

    def __init__(self, path, message: str):
        self.path = str(path)
        super().__init__(f"{self.path}: {message}")


def parse_frontmatter(text: str, path: Any = "<string>") -> Tuple[Dict[str, Any], str]:
    """Split *text* into its YAML frontmatter mapping and the markdown body.

    Text without a leading ``---`` line has no frontmatter and is returned
    unchanged with an empty mapping.
    """
    clean = text.lstrip("\ufeff")
    lines = clean.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, clean

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() in ("---", "..."):
            end = i
            break
    if end is None:
        raise FrontmatterError(path, "frontmatter block is not terminated by '---'")

    try:
        meta = yaml.safe_load("\n".join(lines[1:end])) or {}
    except yaml.YAMLError as exc:
        raise FrontmatterError(path, f"invalid YAML in frontmatter: {exc}") from exc
    if not isinstance(meta, dict):
        raise FrontmatterError(path, "frontmatter must be a mapping")

    body = "\n".join(lines[end + 1:])
    return meta, body


def track_fence(fence: Optional[str], marker: str) -> Optional[str]:
    """Return the open fence after a fence-marker line.

    A fence opened with N backticks (or tildes) only closes on a marker of
    the same character that is at least N long; shorter runs stay inside.
    """
    if fence is None:
        return marker
    if marker[0] == fence[0] and len(marker) >= len(fence):
        return None
    return fence


def strip_mdx_statements(body: str) -> str:
    """Drop top-level MDX ``import``/``export`` lines, leaving fenced code alone."""
    out: List[str] = []
    fence = None
    for line in body.splitlines():
        match = _FENCE_RE.match(line)
        if match:
            fence = track_fence(fence, match.group(1))
            out.append(line)
            continue
        if fence is None and _MDX_STATEMENT_RE.match(line):
            continue
        out.append(line)
    return "\n".join(out)


def _coerce_date(value: Any, path: Path, field: str) -> datetime.datetime:
    """Normalize a YAML date/datetime/string into a naive datetime."""
    if isinstance(value, datetime.datetime):
        return value.replace(tzinfo=None) if value.tzinfo else value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith('Z'):
            raw = raw[:-1] + '+00:00'
        try:
            parsed = datetime.datetime.fromisoformat(raw)
        except ValueError:
            raise FrontmatterError(path, f"'{field}' is not an ISO date: {value!r}") from None
        return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed
    raise FrontmatterError(path, f"'{field}' is missing or empty")


def _coerce_tags(value: Any, path: Path) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(tag).strip() for tag in value if str(tag).strip()]
    raise FrontmatterError(path, f"'tags' must be a string or a list, got {type(value).__name__}")


def _coerce_sticky(value: Any, path: Path) -> int:
    if value is None or value is False:
        return 0
    if value is True:
        return 1
    try:
        return int(value)
    except (TypeError, ValueError):
        raise FrontmatterError(path, f"'sticky' must be a number or boolean, got {value!r}") from None


def _post_url(collection: str, slug: str):
    if collection == 'blog':
        return f"/posts/{slug}/"
    if collection == 'pages':
        return f"/{slug}/"
    return None


def load_post(path: Path, collection: str = 'blog') -> Dict[str, Any]:
    """Read one content file and return its post dict."""
    path = Path(path)
    try:
        text = path.read_text(encoding='utf-8')
    except UnicodeDecodeError as exc:
        raise FrontmatterError(path, f"file is not valid UTF-8: {exc}") from exc
    meta, body = parse_frontmatter(text, path)
    if path.suffix.lower() == '.mdx':
        body = strip_mdx_statements(body)

    # YAML reads titles like 2023 as numbers.
    title = meta.get('title')
    if isinstance(title, (int, float, datetime.date)) and not isinstance(title, bool):
        title = str(title)
    if not isinstance(title, str) or not title.strip():
        raise FrontmatterError(path, "'title' is missing or empty")

    # Standalone pages may omit a date; they are not listed by date anywhere.
    if collection == 'pages' and meta.get('date') is None:
        date = datetime.datetime.fromtimestamp(path.stat().st_mtime)
    else:
        date = _coerce_date(meta.get('date'), path, 'date')

    category = meta.get('category')
    slug = slugify(str(meta.get('slug') or path.stem))

    return {
        'title': title.strip(),
        'date': date,
        'category': str(category).strip() if category else None,
        'tags': _coerce_tags(meta.get('tags'), path),
        'sticky': _coerce_sticky(meta.get('sticky'), path),
        'description': (str(meta['description']).strip() if meta.get('description') else None),
        'draft': bool(meta.get('draft', False)),
        'slug': slug,
        'collection': collection,
        'source_path': str(path),
        'body': body,
        'html': None,
        'last_modified': datetime.datetime.fromtimestamp(path.stat().st_mtime),
        'url': _post_url(collection, slug),
        'meta': meta,
    }


def load_collection(directory, collection: str = 'blog', include_drafts: bool = False) -> List[Dict[str, Any]]:
    """
    Load every content file under *directory* as a post dict.

    Args:
        directory: Collection directory (e.g. ``content/blog``); a missing
            directory yields an empty collection
        collection: One of ``blog``, ``feed`` or ``pages``
        include_drafts: Keep posts marked ``draft: true``

    Returns:
        Post dicts in file path order

    Raises:
        FrontmatterError: On malformed frontmatter or duplicate slugs
    """
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection '{collection}'")

    root = Path(directory)
    if not root.is_dir():
        logger.debug("Collection directory %s does not exist; treating as empty", root)
        return []

    files = sorted(
        p for p in root.rglob('*')
        if p.is_file() and p.suffix.lower() in CONTENT_SUFFIXES
    )

    posts: List[Dict[str, Any]] = []
    seen: Dict[str, str] = {}
    skipped = 0
    for path in files:
        post = load_post(path, collection)
        if post['draft'] and not include_drafts:
            skipped += 1
            continue
        if post['slug'] in seen:
            raise FrontmatterError(
                path, f"slug '{post['slug']}' already used by {seen[post['slug']]}"
            )
        seen[post['slug']] = str(path)
        posts.append(post)

    logger.info(
        "Loaded %d %s entries from %s (%d drafts skipped)",
        len(posts), collection, root, skipped,
    )
    return posts


__all__ = [
    "FrontmatterError",
    "parse_frontmatter",
    "strip_mdx_statements",
    "track_fence",
    "load_post",
    "load_collection",
]
