"""HTML snippets driven by site configuration: analytics, comments, donate, navigation."""

import html
import json
from string import Template
from typing import Any, Dict, List, Optional

GA_TEMPLATE = Template(
    '<script async src="https://www.googletagmanager.com/gtag/js?id=$ga_id"></script>\n'
    '<script>\n'
    '  window.dataLayer = window.dataLayer || [];\n'
    '  function gtag(){dataLayer.push(arguments);}\n'
    "  gtag('js', new Date());\n"
    "  gtag('config', '$ga_id');\n"
    '</script>'
)
BUSUANZI_SCRIPT = (
    '<script async src="https://busuanzi.ibruce.info/busuanzi/2.3/busuanzi.pure.mini.js"></script>'
)
WALINE_TEMPLATE = Template(
    '<div id="waline" class="comment"></div>\n'
    '<link rel="stylesheet" href="https://unpkg.com/@waline/client@v3/dist/waline.css">\n'
    '<script type="module">\n'
    "  import { init } from 'https://unpkg.com/@waline/client@v3/dist/waline.js';\n"
    '  init($options);\n'
    '</script>'
)
GISCUS_TEMPLATE = Template(
    '<div class="comment">\n'
    '<script src="https://giscus.app/client.js" $attrs async></script>\n'
    '</div>'
)
NAV_ITEM = Template('<li class="nav-item$active"><a href="$href"$target><i class="$icon"></i> $name</a></li>')
NAV_DROPDOWN = Template(
    '<li class="nav-item nav-dropdown$active">\n'
    '  <a href="$href"><i class="$icon"></i> $name</a>\n'
    '  <ul class="nav-children">\n$children\n  </ul>\n'
    '</li>'
)
INFO_LINK = Template(
    '<a class="info-link" href="$outlink" title="$name" target="_blank" rel="noopener noreferrer">'
    '<i class="$icon"></i></a>'
)


def _attr(value: Any) -> str:
    return html.escape(str(value if value is not None else ''), quote=True)


def analytics_snippet(options: Dict[str, Any]) -> str:
    """Return Google Analytics and busuanzi scripts enabled in the `config` section."""
    parts: List[str] = []
    ga = options.get('ga')
    if isinstance(ga, str) and ga.strip():
        parts.append(GA_TEMPLATE.substitute(ga_id=_attr(ga.strip())))
    if options.get('busuanzi'):
        parts.append(BUSUANZI_SCRIPT)
    return '\n'.join(parts)


def busuanzi_counter(options: Dict[str, Any]) -> str:
    """Return the visitor counter shown in the footer when busuanzi is enabled."""
    if not options.get('busuanzi'):
        return ''
    return (
        '<span class="busuanzi">Views <span id="busuanzi_value_site_pv"></span> · '
        'Visitors <span id="busuanzi_value_site_uv"></span></span>'
    )


def _waline_options(waline: Dict[str, Any], page_path: str) -> str:
    white_list = waline.get('white_list') or []
    reaction = waline.get('reaction', False)
    if page_path in white_list:
        reaction = False
    options = {
        'el': '#waline',
        'serverURL': waline.get('server_url', ''),
        'path': page_path,
        'lang': waline.get('lang', 'en'),
        'pageSize': waline.get('page_size', 10),
        'wordLimit': waline.get('word_limit') or 0,
        'pageview': bool(waline.get('pageview', False)),
        'reaction': reaction,
        'requiredMeta': waline.get('required_meta') or [],
    }
    return json.dumps(options, ensure_ascii=False).replace('</', '<\\/')


def comment_snippet(comment: Dict[str, Any], page_path: str) -> str:
    """
    Return the comment widget for *page_path*, or '' when comments are disabled.

    Waline reactions are turned off for paths in ``waline_config.white_list``.
    Empty giscus attributes are omitted so giscus falls back to its defaults.
    """
    if not comment.get('enable'):
        return ''
    kind = comment.get('type')
    if kind == 'waline':
        return WALINE_TEMPLATE.substitute(options=_waline_options(comment.get('waline_config') or {}, page_path))
    if kind == 'giscus':
        giscus = comment.get('giscus_config') or {}
        attrs = ' '.join(
            f'{key}="{_attr(value)}"'
            for key, value in giscus.items()
            if value not in (None, '')
        )
        return GISCUS_TEMPLATE.substitute(attrs=attrs)
    raise ValueError(f"Unsupported comment type '{kind}'")


def donate_snippet(donate: Dict[str, Any]) -> str:
    """Return the donation block when `donate.enable` is set."""
    if not donate.get('enable'):
        return ''
    parts = ['<div class="donate">', f'  <p class="donate-tip">{html.escape(donate.get("tip") or "")}</p>']
    for key, label in (('wechat_qr_code', 'WeChat'), ('alipay_qr_code', 'Alipay')):
        if donate.get(key):
            parts.append(
                f'  <figure class="donate-qr"><img src="{_attr(donate[key])}" alt="{label}">'
                f'<figcaption>{label}</figcaption></figure>'
            )
    if donate.get('paypal_url'):
        parts.append(
            f'  <a class="donate-paypal" href="{_attr(donate["paypal_url"])}" '
            'target="_blank" rel="noopener noreferrer">PayPal</a>'
        )
    parts.append('</div>')
    return '\n'.join(parts)


def _is_active(href: Optional[str], current_path: str) -> bool:
    # Only site-absolute paths belong to a section.
    if not href or not href.startswith('/') or href.startswith('//'):
        return False
    href = href.rstrip('/') or '/'
    current = current_path.rstrip('/') or '/'
    if href == '/':
        return current == '/'
    # /blog/1 is active for every /blog/N listing page.
    section = href.split('/')[1]
    return current == href or current.split('/')[1] == section


def navigation_html(categories: List[Dict[str, Any]], current_path: str = '/') -> str:
    """Render the header navigation; entries with children become dropdowns."""
    items: List[str] = []
    for entry in categories:
        children = entry.get('children') or []
        if children:
            child_html = navigation_html(children, current_path)
            active = any(_is_active(child.get('href'), current_path) for child in children)
            items.append(NAV_DROPDOWN.substitute(
                active=' active' if active else '',
                href=_attr(entry.get('href') or '#'),
                icon=_attr(entry.get('icon_class')),
                name=html.escape(entry['name']),
                children=child_html,
            ))
            continue
        target = entry.get('target')
        items.append(NAV_ITEM.substitute(
            active=' active' if _is_active(entry.get('href'), current_path) else '',
            href=_attr(entry.get('href')),
            target=f' target="{_attr(target)}"' if target else '',
            icon=_attr(entry.get('icon_class')),
            name=html.escape(entry['name']),
        ))
    return '\n'.join(items)


def info_links_html(info_links: List[Dict[str, Any]]) -> str:
    """Render the social/profile links."""
    return '\n'.join(
        INFO_LINK.substitute(
            outlink=_attr(link.get('outlink')),
            name=_attr(link.get('name')),
            icon=_attr(link.get('icon')),
        )
        for link in info_links
    )


__all__ = [
    "analytics_snippet",
    "busuanzi_counter",
    "comment_snippet",
    "donate_snippet",
    "navigation_html",
    "info_links_html",
]
