"""Tests for markdown rendering and the site's syntax additions."""

import sys
import textwrap
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from inkpress.processors.markdown_renderer import MarkdownRenderer  # noqa: E402


@pytest.fixture
def renderer():
    return MarkdownRenderer(code_folding_start_lines=5)


def md(text: str) -> str:
    return textwrap.dedent(text).strip() + "\n"


def test_render_basic_markdown(renderer):
    html = renderer.render(md("""
        # Title

        Hello *world* and a [link](https://example.com).

        | a | b |
        |---|---|
        | 1 | 2 |
    """))
    assert '<h1 id="title">Title</h1>' in html
    assert '<em>world</em>' in html
    assert '<a href="https://example.com">link</a>' in html
    assert '<table>' in html


def test_render_empty_text(renderer):
    assert renderer.render('') == ''
    assert renderer.render('   \n') == ''


def test_aside_block_renders_inner_markdown(renderer):
    html = renderer.render(md("""
        Before.

        :::note
        Be *careful* here.
        :::

        After.
    """))
    assert '<aside class="aside aside-note" aria-label="Note">' in html
    assert '<p class="aside-title">Note</p>' in html
    assert '<em>careful</em>' in html
    assert 'After.' in html
    assert ':::' not in html


def test_aside_custom_titles(renderer):
    bracketed = renderer.render(":::tip[Pro tip]\nUse tabs.\n:::\n")
    assert 'aside-tip' in bracketed
    assert '<p class="aside-title">Pro tip</p>' in bracketed

    trailing = renderer.render(":::danger Do not do this\nrm -rf\n:::\n")
    assert 'aside-danger' in trailing
    assert 'Do not do this' in trailing


def test_collapse_block_with_nested_aside(renderer):
    html = renderer.render(md("""
        :::collapse Click to expand
        Hidden text.

        :::caution
        Nested.
        :::
        :::
    """))
    assert '<details class="collapse">' in html
    assert '<summary>Click to expand</summary>' in html
    assert 'aside-caution' in html
    assert 'Hidden text.' in html
    assert ':::' not in html


def test_unknown_or_unclosed_directives_are_left_as_text(renderer):
    assert ':::spoiler' in renderer.render(":::spoiler\ntext\n:::\n")
    assert ':::note' in renderer.render(":::note\nnever closed\n")


def test_directive_inside_code_fence_is_not_rendered(renderer):
    html = renderer.render("```\n:::note\ninside code\n:::\n```\n")
    assert 'aside' not in html
    assert ':::note' in html


def test_mermaid_fence(renderer):
    html = renderer.render("```mermaid\ngraph TD; A-->B\n```\n")
    assert '<pre class="mermaid">' in html
    assert 'A--&gt;B' in html
    assert '<code' not in html


def test_math_is_left_untouched(renderer):
    html = renderer.render("Inline $x*y*z$ and text.\n\n$$\na*b*c\n$$\n")
    assert '$x*y*z$' in html
    assert '<em>' not in html
    assert 'class="math math-inline"' in html
    assert 'class="math math-display"' in html


def test_dollars_in_inline_code_are_not_math(renderer):
    html = renderer.render("Use `$HOME` and `$PATH`.\n")
    assert '<code>$HOME</code>' in html
    assert 'math' not in html


def test_images_are_lazy_loaded(renderer):
    html = renderer.render("![A cat](/img/cat.png)\n")
    assert 'data-src="/img/cat.png"' in html
    assert 'src="/spinner.gif"' in html
    assert 'data-alt="A cat"' in html
    assert 'alt="default"' in html


def test_long_code_blocks_are_folded(renderer):
    long_block = "```python\n" + "\n".join(f"x = {i}" for i in range(8)) + "\n```\n"
    short_block = "```python\nx = 1\n```\n"

    folded = renderer.render(long_block)
    assert 'class="code-fold"' in folded
    assert 'data-lines="8"' in folded

    assert 'code-fold' not in renderer.render(short_block)


def test_code_folding_can_be_disabled():
    renderer = MarkdownRenderer(code_folding_start_lines=0)
    block = "```\n" + "\n".join(str(i) for i in range(50)) + "\n```\n"
    assert 'code-fold' not in renderer.render(block)


def test_excerpt_strips_markup(renderer):
    html = renderer.render("Some **bold** text " + "word " * 60)
    excerpt = renderer.excerpt(html, length=40)
    assert '<' not in excerpt
    assert excerpt.startswith('Some bold text')
    assert excerpt.endswith('...')
    assert len(excerpt) <= 43


def test_directives_stay_literal_inside_longer_fences(renderer):
    html = renderer.render(md("""
        ````markdown
        ```
        inner
        ```
        :::note
        Stays literal.
        :::
        ````
    """))
    assert 'aside' not in html
    assert ':::note' in html
    assert "Stays literal." in html


def test_mermaid_fence_closes_only_on_matching_marker(renderer):
    html = renderer.render("````mermaid\ngraph TD; A-->B\n```\nC-->D\n````\n")
    assert '<pre class="mermaid">' in html
    assert 'C--&gt;D' in html
    assert '```' in html
