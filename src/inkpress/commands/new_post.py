"""
New post command implementation.
Scaffolds a markdown file with frontmatter in one of the content collections.
"""

import datetime
import logging
from pathlib import Path
from typing import List, Optional

import yaml

from ..core.config import ConfigManager
from ..core.text_utils import slugify
from ..processors.collection_loader import COLLECTIONS

logger = logging.getLogger(__name__)


def run(
    title: str,
    site_dir: Optional[str] = None,
    collection: str = 'blog',
    category: Optional[str] = None,
    tags: Optional[List[str]] = None,
    sticky: int = 0,
    draft: bool = False,
    date: Optional[datetime.date] = None,
) -> Path:
    """Create ``content/<collection>/<slug>.md`` and return its path.

    Args:
        title: Post title; also the source of the file name
        site_dir: Site directory (defaults to $INKPRESS_SITE_DIR or cwd)
        collection: ``blog``, ``feed`` or ``pages``
        category: Optional category
        tags: Optional list of tags
        sticky: Sticky priority (0 = not pinned)
        draft: Mark the post as a draft
        date: Publication date (defaults to today)

    Raises:
        ValueError: For an empty title or unknown collection
        FileExistsError: If the target file already exists
    """
    if not title or not title.strip():
        raise ValueError("Title must not be empty")
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection '{collection}' (expected one of {', '.join(COLLECTIONS)})")

    config_manager = ConfigManager(site_dir=site_dir)
    content_dir = config_manager.resolve_path('content_dir')
    target = content_dir / collection / f"{slugify(title)}.md"
    if target.exists():
        raise FileExistsError(f"{target} already exists")

    meta = {
        'title': title.strip(),
        'date': (date or datetime.date.today()).isoformat(),
    }
    if category:
        meta['category'] = category
    if tags:
        meta['tags'] = list(tags)
    if sticky:
        meta['sticky'] = int(sticky)
    if draft:
        meta['draft'] = True

    frontmatter = yaml.safe_dump(meta, allow_unicode=True, sort_keys=False).strip()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(f"---\n{frontmatter}\n---\n\n", encoding='utf-8')

    logger.info("Created %s entry %s", collection, target)
    return target
