"""Tests for configuration-driven HTML snippets."""

import json
import re
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from inkpress.processors.widgets import (  # noqa: E402
    analytics_snippet,
    busuanzi_counter,
    comment_snippet,
    donate_snippet,
    info_links_html,
    navigation_html,
)


def test_analytics_snippet_includes_enabled_trackers():
    snippet = analytics_snippet({'ga': 'G-TEST123', 'busuanzi': True})
    assert 'gtag/js?id=G-TEST123' in snippet
    assert "gtag('config', 'G-TEST123')" in snippet
    assert 'busuanzi.pure.mini.js' in snippet


def test_analytics_snippet_empty_when_disabled():
    assert analytics_snippet({'ga': False, 'busuanzi': False}) == ''
    assert busuanzi_counter({'busuanzi': False}) == ''
    assert 'busuanzi_value_site_pv' in busuanzi_counter({'busuanzi': True})


def test_comment_snippet_disabled_returns_empty():
    assert comment_snippet({'enable': False, 'type': 'waline'}, '/posts/a/') == ''


def test_comment_snippet_rejects_unknown_type():
    with pytest.raises(ValueError):
        comment_snippet({'enable': True, 'type': 'disqus'}, '/')


def _waline_options(snippet):
    match = re.search(r'init\((\{.*\})\);', snippet)
    assert match, snippet
    return json.loads(match.group(1))


def test_waline_reaction_is_disabled_for_white_listed_paths():
    comment = {
        'enable': True,
        'type': 'waline',
        'waline_config': {
            'server_url': 'https://comments.example.com',
            'reaction': True,
            'white_list': ['/message/'],
        },
    }
    post = _waline_options(comment_snippet(comment, '/posts/hello/'))
    assert post['serverURL'] == 'https://comments.example.com'
    assert post['path'] == '/posts/hello/'
    assert post['reaction'] is True

    message = _waline_options(comment_snippet(comment, '/message/'))
    assert message['reaction'] is False


def test_giscus_skips_empty_attributes():
    comment = {
        'enable': True,
        'type': 'giscus',
        'giscus_config': {
            'data-repo': 'me/blog',
            'data-repo-id': 'R_123',
            'data-category-id': '',
            'data-theme': 'light',
        },
    }
    snippet = comment_snippet(comment, '/posts/a/')
    assert 'src="https://giscus.app/client.js"' in snippet
    assert 'data-repo="me/blog"' in snippet
    assert 'data-theme="light"' in snippet
    assert 'data-category-id' not in snippet


def test_donate_snippet():
    assert donate_snippet({'enable': False}) == ''
    snippet = donate_snippet({
        'enable': True,
        'tip': 'Buy me a coffee',
        'wechat_qr_code': '/wechat.png',
        'paypal_url': 'https://paypal.me/someone',
    })
    assert 'Buy me a coffee' in snippet
    assert 'src="/wechat.png"' in snippet
    assert 'Alipay' not in snippet
    assert 'href="https://paypal.me/someone"' in snippet


def test_navigation_marks_active_section_and_dropdowns():
    categories = [
        {'name': 'Home', 'href': '/', 'icon_class': 'icon-home'},
        {'name': 'Blog', 'href': '/blog/1/', 'icon_class': 'icon-blog'},
        {
            'name': 'More',
            'children': [
                {'name': 'About', 'href': '/about/'},
                {'name': 'GitHub', 'href': 'https://github.com/someone', 'target': '_blank'},
            ],
        },
    ]

    on_blog = navigation_html(categories, '/blog/3/')
    assert '<li class="nav-item active"><a href="/blog/1/">' in on_blog
    assert '<li class="nav-item"><a href="/">' in on_blog
    assert 'nav-dropdown"' in on_blog
    assert 'target="_blank"' in on_blog

    on_about = navigation_html(categories, '/about/')
    assert 'nav-dropdown active' in on_about

    at_home = navigation_html(categories, '/')
    assert '<li class="nav-item active"><a href="/">' in at_home


def test_info_links_html_escapes_values():
    rendered = info_links_html([
        {'name': 'GitHub', 'outlink': 'https://github.com/someone', 'icon': 'icon-github'},
        {'name': 'Q&A', 'outlink': 'https://example.com/?a=1&b=2', 'icon': 'icon-q'},
    ])
    assert 'href="https://github.com/someone"' in rendered
    assert 'title="Q&amp;A"' in rendered
    assert 'a=1&amp;b=2' in rendered
    assert rendered.count('<a class="info-link"') == 2


def test_navigation_tolerates_non_path_hrefs():
    categories = [
        {'name': 'Mail', 'href': 'mailto:me@example.com'},
        {'name': 'Top', 'href': '#'},
        {'name': 'Notes', 'href': 'notes'},
        {'name': 'Blog', 'href': '/blog/1/'},
    ]
    rendered = navigation_html(categories, '/blog/2/')
    assert '<li class="nav-item"><a href="mailto:me@example.com">' in rendered
    assert '<li class="nav-item"><a href="#">' in rendered
    assert '<li class="nav-item"><a href="notes">' in rendered
    assert '<li class="nav-item active"><a href="/blog/1/">' in rendered
