"""
Markdown to HTML rendering for post bodies.

Wraps Python-Markdown with the site's own syntax additions:

- ``:::note`` / ``:::tip`` / ``:::important`` / ``:::caution`` / ``:::warning`` /
  ``:::danger`` container blocks rendered as asides
- ``:::collapse Title`` blocks rendered as ``<details>``
- ```` ```mermaid ```` fences passed to the client-side mermaid renderer
- ``$...$`` and ``$$...$$`` math left untouched for MathJax
- lazy-loaded images and folding of long code blocks
"""

import html
import logging
import re
from typing import Dict, List, Optional

import markdown
from markdown.extensions import Extension
from markdown.postprocessors import Postprocessor
from markdown.preprocessors import Preprocessor

from ..core.text_utils import strip_tags, truncate
from .collection_loader import track_fence

logger = logging.getLogger(__name__)

ASIDE_KINDS: Dict[str, str] = {
    'note': 'Note',
    'tip': 'Tip',
    'important': 'Important',
    'caution': 'Caution',
    'warning': 'Warning',
    'danger': 'Danger',
}
COLLAPSE_KIND = 'collapse'
LAZY_PLACEHOLDER = '/spinner.gif'

_FENCE_RE = re.compile(r"^\s*(`{3,}|~{3,})\s*([\w+-]*)")
_DIRECTIVE_OPEN_RE = re.compile(r"^\s*:::\s*([A-Za-z]+)(?:\[(.*?)\])?\s*(.*?)\s*$")
_DIRECTIVE_CLOSE_RE = re.compile(r"^\s*:::\s*$")
_MATH_RE = re.compile(
    r"(?P<code>`+)[^`]*?(?P=code)"
    r"|(?<!\\)\$\$(?P<block>.+?)(?<!\\)\$\$"
    r"|(?<![\\$])\$(?P<inline>[^\s$](?:[^$\n]*?[^\s$\\])?)\$(?!\$)",
    re.DOTALL,
)
_PRE_RE = re.compile(r"<pre(?P<attrs>\s[^>]*)?>(?P<body>.*?)</pre>", re.DOTALL)
_IMG_RE = re.compile(r"<img\b(?P<attrs>[^>]*?)\s*/?>", re.IGNORECASE)
_ATTR_RE = re.compile(r'([\w:-]+)\s*=\s*"([^"]*)"')


class DirectivePreprocessor(Preprocessor):
    """Render ``:::kind`` container blocks (asides and collapsibles)."""

    def __init__(self, md, renderer: "MarkdownRenderer"):
        super().__init__(md)
        self.renderer = renderer

    def run(self, lines: List[str]) -> List[str]:
        out: List[str] = []
        fence = None
        i = 0
        while i < len(lines):
            line = lines[i]
            fence_match = _FENCE_RE.match(line)
            if fence_match:
                fence = track_fence(fence, fence_match.group(1))
                out.append(line)
                i += 1
                continue

            opening = _DIRECTIVE_OPEN_RE.match(line) if fence is None else None
            kind = opening.group(1).lower() if opening else None
            if kind not in ASIDE_KINDS and kind != COLLAPSE_KIND:
                out.append(line)
                i += 1
                continue

            close = self._find_close(lines, i + 1)
            if close is None:
                logger.warning("Unclosed ':::%s' block; leaving it as text", kind)
                out.append(line)
                i += 1
                continue

            title = opening.group(2) or opening.group(3) or ''
            inner_html = self.renderer.render('\n'.join(lines[i + 1:close]))
            block = self._render_block(kind, title.strip(), inner_html)
            out.extend(['', self.md.htmlStash.store(block), ''])
            i = close + 1
        return out

    @staticmethod
    def _find_close(lines: List[str], start: int) -> Optional[int]:
        """Return the index of the ``:::`` line closing a block opened before *start*."""
        depth = 1
        fence = None
        for index in range(start, len(lines)):
            line = lines[index]
            fence_match = _FENCE_RE.match(line)
            if fence_match:
                fence = track_fence(fence, fence_match.group(1))
                continue
            if fence is not None:
                continue
            if _DIRECTIVE_CLOSE_RE.match(line):
                depth -= 1
                if depth == 0:
                    return index
            elif _DIRECTIVE_OPEN_RE.match(line):
                depth += 1
        return None

    @staticmethod
    def _render_block(kind: str, title: str, inner_html: str) -> str:
        if kind == COLLAPSE_KIND:
            summary = html.escape(title or 'Details')
            return (
                '<details class="collapse">\n'
                f'<summary>{summary}</summary>\n'
                f'<div class="collapse-content">\n{inner_html}\n</div>\n'
                '</details>'
            )
        label = html.escape(title or ASIDE_KINDS[kind])
        return (
            f'<aside class="aside aside-{kind}" aria-label="{label}">\n'
            f'<p class="aside-title">{label}</p>\n'
            f'<div class="aside-content">\n{inner_html}\n</div>\n'
            '</aside>'
        )


class MermaidPreprocessor(Preprocessor):
    """Turn ```` ```mermaid ```` fences into ``<pre class="mermaid">`` blocks."""

    def run(self, lines: List[str]) -> List[str]:
        out: List[str] = []
        i = 0
        while i < len(lines):
            match = _FENCE_RE.match(lines[i])
            if not match:
                out.append(lines[i])
                i += 1
                continue
            marker = match.group(1)
            end = i + 1
            while end < len(lines):
                closing = _FENCE_RE.match(lines[end])
                if closing and track_fence(marker, closing.group(1)) is None:
                    break
                end += 1
            if match.group(2).lower() != 'mermaid' or end >= len(lines):
                out.extend(lines[i:end + 1])
                i = end + 1
                continue
            source = html.escape('\n'.join(lines[i + 1:end]))
            out.extend(['', self.md.htmlStash.store(f'<pre class="mermaid">\n{source}\n</pre>'), ''])
            i = end + 1
        return out


class MathPreprocessor(Preprocessor):
    """Protect TeX spans from markdown emphasis handling."""

    def run(self, lines: List[str]) -> List[str]:
        out: List[str] = []
        chunk: List[str] = []
        fence = None
        for line in lines:
            fence_match = _FENCE_RE.match(line)
            if fence_match:
                if fence is None:
                    out.extend(self._protect(chunk))
                    chunk = []
                fence = track_fence(fence, fence_match.group(1))
                out.append(line)
                continue
            if fence is None:
                chunk.append(line)
            else:
                out.append(line)
        out.extend(self._protect(chunk))
        return out

    def _protect(self, chunk: List[str]) -> List[str]:
        if not chunk:
            return []
        text = '\n'.join(chunk)

        def repl(match: re.Match) -> str:
            if match.group('code'):
                return match.group(0)
            escaped = html.escape(match.group(0), quote=False)
            if match.group('block') is not None:
                return '\n\n' + self.md.htmlStash.store(
                    f'<div class="math math-display">{escaped}</div>'
                ) + '\n\n'
            return self.md.htmlStash.store(f'<span class="math math-inline">{escaped}</span>')

        return _MATH_RE.sub(repl, text).split('\n')


class LazyImagePostprocessor(Postprocessor):
    """Defer image loading: the real source moves to ``data-src``."""

    def __init__(self, md, placeholder: str):
        super().__init__(md)
        self.placeholder = placeholder

    def run(self, text: str) -> str:
        def repl(match: re.Match) -> str:
            attrs = dict(_ATTR_RE.findall(match.group('attrs')))
            if 'data-src' in attrs or 'src' not in attrs:
                return match.group(0)
            attrs['data-src'] = attrs['src']
            attrs['src'] = self.placeholder
            attrs['data-alt'] = attrs.get('alt', '')
            attrs['alt'] = 'default'
            rendered = ' '.join(f'{key}="{value}"' for key, value in attrs.items())
            return f'<img {rendered}>'

        return _IMG_RE.sub(repl, text)


class CodeFoldPostprocessor(Postprocessor):
    """Mark long ``<pre>`` blocks as foldable."""

    def __init__(self, md, start_lines: int):
        super().__init__(md)
        self.start_lines = start_lines

    def run(self, text: str) -> str:
        if self.start_lines <= 0:
            return text

        def repl(match: re.Match) -> str:
            attrs = match.group('attrs') or ''
            if 'mermaid' in attrs or 'data-lines=' in attrs:
                return match.group(0)
            body = match.group('body')
            line_count = re.sub(r'<[^>]+>', '', body).strip('\n').count('\n') + 1
            if line_count <= self.start_lines:
                return match.group(0)
            if 'class="' in attrs:
                attrs = attrs.replace('class="', 'class="code-fold ', 1)
            else:
                attrs += ' class="code-fold"'
            return f'<pre{attrs} data-lines="{line_count}">{body}</pre>'

        return _PRE_RE.sub(repl, text)


class InkpressExtension(Extension):
    """Python-Markdown extension bundling the site's syntax additions."""

    def __init__(self, renderer: "MarkdownRenderer", **kwargs):
        self.renderer = renderer
        super().__init__(**kwargs)

    def extendMarkdown(self, md):
        # Higher priority runs first; fenced_code sits at 25.
        md.preprocessors.register(DirectivePreprocessor(md, self.renderer), 'inkpress_directives', 29)
        md.preprocessors.register(MermaidPreprocessor(md), 'inkpress_mermaid', 28)
        md.preprocessors.register(MathPreprocessor(md), 'inkpress_math', 27)
        # Run after raw HTML has been restored (raw_html is 30).
        md.postprocessors.register(
            CodeFoldPostprocessor(md, self.renderer.code_folding_start_lines), 'inkpress_code_fold', 15
        )
        md.postprocessors.register(
            LazyImagePostprocessor(md, self.renderer.lazy_placeholder), 'inkpress_lazy_images', 14
        )


class MarkdownRenderer:
    """Renders markdown post bodies to HTML fragments."""

    BASE_EXTENSIONS = ['extra', 'toc', 'sane_lists']

    def __init__(self, code_folding_start_lines: int = 16, lazy_placeholder: str = LAZY_PLACEHOLDER):
        self.code_folding_start_lines = code_folding_start_lines
        self.lazy_placeholder = lazy_placeholder

    def _build(self) -> markdown.Markdown:
        return markdown.Markdown(
            extensions=self.BASE_EXTENSIONS + [InkpressExtension(self)],
            output_format='html',
        )

    def render(self, text: str) -> str:
        """Render markdown *text* to an HTML fragment."""
        if not text or not text.strip():
            return ''
        # Nested directive blocks render recursively, so each call gets its own instance.
        return self._build().convert(text)

    def excerpt(self, rendered_html: str, length: int = 150) -> str:
        """Return a plain-text excerpt of *rendered_html*."""
        return truncate(strip_tags(rendered_html), length)


__all__ = [
    "ASIDE_KINDS",
    "InkpressExtension",
    "MarkdownRenderer",
]
