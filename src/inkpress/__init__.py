from __future__ import annotations

import datetime
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from .commands import build as build_cmd
from .commands import clean as clean_cmd
from .commands import new_post as new_post_cmd
from .core.config import ConfigManager
from .processors.collection_loader import FrontmatterError, load_collection

logger = logging.getLogger(__name__)

__all__ = [
    'build',
    'new_post',
    'clean',
    'status',
    'FrontmatterError',
]


def build(
    site_dir: Optional[str] = None,
    *,
    drafts: Optional[bool] = None,
    clean: bool = False,
) -> Dict[str, Any]:
    """Build the static site programmatically.

    Args:
        site_dir: Site directory; defaults to $INKPRESS_SITE_DIR or the cwd.
        drafts: Include draft posts; None uses ``build.drafts`` from site.yaml.
        clean: Remove the output directory first.

    Returns:
        Build summary with counts and the output directory.
    """
    return build_cmd.run(site_dir, include_drafts=drafts, clean=clean)


def new_post(
    title: str,
    *,
    site_dir: Optional[str] = None,
    collection: str = 'blog',
    category: Optional[str] = None,
    tags: Optional[List[str]] = None,
    sticky: int = 0,
    draft: bool = False,
    date: Optional[datetime.date] = None,
) -> Path:
    """Scaffold a new content file and return its path."""
    return new_post_cmd.run(
        title,
        site_dir=site_dir,
        collection=collection,
        category=category,
        tags=tags,
        sticky=sticky,
        draft=draft,
        date=date,
    )


def clean(site_dir: Optional[str] = None) -> bool:
    """Remove the generated output directory."""
    return clean_cmd.run(site_dir)


def status(site_dir: Optional[str] = None) -> Dict[str, Any]:
    """Return configuration and content status for programmatic use."""
    info: Dict[str, Any] = {}
    try:
        cm = ConfigManager(site_dir=site_dir)
        info['config_path'] = cm.config_path
        valid = cm.validate_config()
        info['valid'] = bool(valid)
        if not valid:
            return info
        content_dir = cm.resolve_path('content_dir')
        counts = {}
        drafts = 0
        for collection in ('blog', 'feed', 'pages'):
            entries = load_collection(content_dir / collection, collection, include_drafts=True)
            counts[collection] = len(entries)
            drafts += sum(1 for entry in entries if entry['draft'])
        output_dir = cm.resolve_path('output_dir')
        info.update({
            'site_title': cm.get_site()['title'],
            'content_dir': str(content_dir),
            'output_dir': str(output_dir),
            'built': os.path.exists(output_dir / 'index.html'),
            'posts': counts['blog'],
            'feed_notes': counts['feed'],
            'pages': counts['pages'],
            'drafts': drafts,
        })
        return info
    except Exception as e:
        info.update({'valid': False, 'error': str(e)})
        return info
