"""
Machine-readable outputs: RSS 2.0 feed, sitemap, and the client-side search index.
"""

import json
import xml.etree.ElementTree as ET
from email.utils import format_datetime
from typing import Any, Dict, Iterable, List, Optional

from .paginator import sort_by_date

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


def absolute_url(site_url: str, path: str) -> str:
    """Join the configured site URL and a root-relative *path*."""
    if path.startswith(('http://', 'https://')):
        return path
    return site_url.rstrip('/') + '/' + path.lstrip('/')


def _to_xml(root: ET.Element) -> str:
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding='unicode')


def build_rss(site: Dict[str, Any], posts: List[Dict[str, Any]], limit: Optional[int] = None) -> str:
    """Return an RSS 2.0 document for *posts*, newest first."""
    rss = ET.Element('rss', {'version': '2.0'})
    channel = ET.SubElement(rss, 'channel')
    ET.SubElement(channel, 'title').text = site.get('title', '')
    ET.SubElement(channel, 'link').text = absolute_url(site['url'], '/')
    ET.SubElement(channel, 'description').text = site.get('description') or site.get('title', '')

    ordered = sort_by_date(posts)
    if limit:
        ordered = ordered[:limit]
    if ordered:
        ET.SubElement(channel, 'lastBuildDate').text = format_datetime(ordered[0]['date'])

    for post in ordered:
        link = absolute_url(site['url'], post['url'])
        item = ET.SubElement(channel, 'item')
        ET.SubElement(item, 'title').text = post['title']
        ET.SubElement(item, 'link').text = link
        ET.SubElement(item, 'guid', {'isPermaLink': 'true'}).text = link
        ET.SubElement(item, 'pubDate').text = format_datetime(post['date'])
        ET.SubElement(item, 'description').text = post.get('description') or ''
        if post.get('category'):
            ET.SubElement(item, 'category').text = post['category']
        for tag in post.get('tags') or []:
            ET.SubElement(item, 'category').text = tag
    return _to_xml(rss)


def build_sitemap(site: Dict[str, Any], urls: Iterable[Any]) -> str:
    """
    Return a sitemap for *urls*.

    Each item is either a path string or a ``(path, lastmod_datetime)`` pair.
    """
    urlset = ET.Element('urlset', {'xmlns': SITEMAP_NS})
    seen = set()
    for item in urls:
        path, lastmod = item if isinstance(item, tuple) else (item, None)
        if path in seen:
            continue
        seen.add(path)
        url = ET.SubElement(urlset, 'url')
        ET.SubElement(url, 'loc').text = absolute_url(site['url'], path)
        if lastmod is not None:
            ET.SubElement(url, 'lastmod').text = lastmod.strftime('%Y-%m-%d')
    return _to_xml(urlset)


def build_search_index(posts: List[Dict[str, Any]]) -> str:
    """Return the JSON search index consumed by the search page."""
    entries = [
        {
            'title': post['title'],
            'url': post['url'],
            'date': post['date'].strftime('%Y-%m-%d'),
            'description': post.get('description') or '',
            'category': post.get('category'),
            'tags': post.get('tags') or [],
        }
        for post in sort_by_date(posts)
    ]
    return json.dumps(entries, ensure_ascii=False, indent=2)


__all__ = [
    "absolute_url",
    "build_rss",
    "build_sitemap",
    "build_search_index",
]
