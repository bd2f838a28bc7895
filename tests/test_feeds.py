"""Tests for RSS, sitemap, and search index output."""

import datetime
import json
import sys
import xml.etree.ElementTree as ET
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from inkpress.processors.feeds import (  # noqa: E402
    SITEMAP_NS,
    absolute_url,
    build_rss,
    build_search_index,
    build_sitemap,
)

SITE = {'title': 'Test Blog', 'url': 'https://blog.example.com/', 'description': 'Notes'}


def make_post(title, day, **extra):
    post = {
        'title': title,
        'date': datetime.datetime(2024, 5, day, 8, 0, tzinfo=datetime.timezone.utc),
        'url': f'/posts/{title.lower()}/',
        'description': f'About {title}',
        'category': None,
        'tags': [],
        'sticky': 0,
    }
    post.update(extra)
    return post


def test_absolute_url():
    assert absolute_url('https://x.org/', '/posts/a/') == 'https://x.org/posts/a/'
    assert absolute_url('https://x.org', 'rss.xml') == 'https://x.org/rss.xml'
    assert absolute_url('https://x.org', 'https://other.org/a') == 'https://other.org/a'


def test_build_rss_lists_posts_newest_first():
    posts = [
        make_post('Older', 1, category='Dev', tags=['python']),
        make_post('Newer', 9, sticky=1),
    ]
    root = ET.fromstring(build_rss(SITE, posts))

    channel = root.find('channel')
    assert root.get('version') == '2.0'
    assert channel.findtext('title') == 'Test Blog'
    assert channel.findtext('link') == 'https://blog.example.com/'

    items = channel.findall('item')
    assert [i.findtext('title') for i in items] == ['Newer', 'Older']
    assert items[1].findtext('link') == 'https://blog.example.com/posts/older/'
    assert items[1].findtext('guid') == items[1].findtext('link')
    assert items[1].findtext('pubDate').startswith('Wed, 01 May 2024')
    assert [c.text for c in items[1].findall('category')] == ['Dev', 'python']


def test_build_rss_limit():
    posts = [make_post(f'P{i}', i) for i in range(1, 6)]
    items = ET.fromstring(build_rss(SITE, posts, limit=2)).find('channel').findall('item')
    assert [i.findtext('title') for i in items] == ['P5', 'P4']


def test_build_rss_empty_site():
    channel = ET.fromstring(build_rss(SITE, [])).find('channel')
    assert channel.findall('item') == []
    assert channel.find('lastBuildDate') is None


def test_build_sitemap_dedups_and_sets_lastmod():
    xml = build_sitemap(SITE, [
        '/',
        ('/posts/a/', datetime.datetime(2024, 2, 3)),
        '/',
        '/blog/1/',
    ])
    root = ET.fromstring(xml)
    ns = {'sm': SITEMAP_NS}
    locs = [u.findtext('sm:loc', namespaces=ns) for u in root.findall('sm:url', ns)]
    assert locs == [
        'https://blog.example.com/',
        'https://blog.example.com/posts/a/',
        'https://blog.example.com/blog/1/',
    ]
    lastmods = [u.findtext('sm:lastmod', namespaces=ns) for u in root.findall('sm:url', ns)]
    assert lastmods == [None, '2024-02-03', None]


def test_build_search_index():
    entries = json.loads(build_search_index([
        make_post('Alpha', 2, tags=['x']),
        make_post('Beta', 4, category='Life'),
    ]))
    assert [e['title'] for e in entries] == ['Beta', 'Alpha']
    assert entries[0] == {
        'title': 'Beta',
        'url': '/posts/beta/',
        'date': '2024-05-04',
        'description': 'About Beta',
        'category': 'Life',
        'tags': [],
    }
