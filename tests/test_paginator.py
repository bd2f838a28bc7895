"""Tests for post ordering and pagination."""

import datetime
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from inkpress.processors.paginator import (  # noqa: E402
    group_by_category,
    group_by_tag,
    group_by_year,
    page_numbers,
    paginate,
    recent_posts,
    sort_by_date,
    sort_posts,
)


def make_post(title, day, sticky=0, tags=None, category=None, year=2024):
    return {
        'title': title,
        'date': datetime.datetime(year, 1, day),
        'sticky': sticky,
        'tags': tags or [],
        'category': category,
        'url': f'/posts/{title.lower()}/',
    }


@pytest.fixture
def posts():
    return [
        make_post('Old', 1),
        make_post('Pinned', 2, sticky=1),
        make_post('Newest', 20),
        make_post('Middle', 10),
        make_post('Top', 3, sticky=5),
    ]


def test_sort_posts_sticky_first_then_newest(posts):
    ordered = [p['title'] for p in sort_posts(posts)]
    assert ordered == ['Top', 'Pinned', 'Newest', 'Middle', 'Old']


def test_sort_posts_does_not_mutate_input(posts):
    before = [p['title'] for p in posts]
    sort_posts(posts)
    assert [p['title'] for p in posts] == before


def test_sort_posts_breaks_date_ties_by_title():
    tied = [make_post('beta', 5), make_post('Alpha', 5)]
    assert [p['title'] for p in sort_posts(tied)] == ['Alpha', 'beta']


def test_sort_by_date_ignores_sticky(posts):
    assert [p['title'] for p in sort_by_date(posts)] == ['Newest', 'Middle', 'Top', 'Pinned', 'Old']


def test_recent_posts_limits_count(posts):
    assert [p['title'] for p in recent_posts(posts, 2)] == ['Newest', 'Middle']
    assert recent_posts(posts, 0) == []


def test_paginate_slices_fixed_size_pages():
    items = list(range(23))
    pages = paginate(items, 10, '/blog')

    assert len(pages) == 3
    for number, page in enumerate(pages, 1):
        assert page['current_page'] == number
        assert page['total_pages'] == 3
        assert page['total_items'] == 23
        assert page['items'] == items[(number - 1) * 10:number * 10]
        assert page['url'] == f'/blog/{number}/'

    assert pages[0]['prev_url'] is None
    assert pages[0]['next_url'] == '/blog/2/'
    assert pages[1]['prev_url'] == '/blog/1/'
    assert pages[2]['next_url'] is None
    assert len(pages[2]['items']) == 3


def test_paginate_listing_matches_sticky_then_date_order(posts):
    ordered = sort_posts(posts)
    pages = paginate(ordered, 2, '/blog/')
    flattened = [p for page in pages for p in page['items']]
    assert flattened == ordered
    assert pages[1]['items'] == ordered[2:4]
    assert pages[1]['url'] == '/blog/2/'


def test_paginate_empty_collection_yields_one_page():
    pages = paginate([], 10, '/archive')
    assert len(pages) == 1
    assert pages[0]['items'] == []
    assert pages[0]['prev_url'] is None and pages[0]['next_url'] is None


def test_paginate_exact_multiple_has_no_trailing_empty_page():
    assert len(paginate(list(range(20)), 10, '/blog')) == 2


def test_paginate_rejects_non_positive_page_size():
    with pytest.raises(ValueError):
        paginate([1, 2], 0, '/blog')


def test_page_numbers_window_and_gaps():
    assert page_numbers(1, 1) == [1]
    assert page_numbers(1, 3) == [1, 2, 3]
    assert page_numbers(1, 10) == [1, 2, 3, None, 10]
    assert page_numbers(6, 12) == [1, None, 4, 5, 6, 7, 8, None, 12]
    assert page_numbers(12, 12) == [1, None, 10, 11, 12]


def test_group_by_year_newest_first():
    grouped = group_by_year([make_post('a', 1, year=2022), make_post('b', 1, year=2024), make_post('c', 2, year=2024)])
    assert [year for year, _ in grouped] == [2024, 2022]
    assert [p['title'] for p in grouped[0][1]] == ['c', 'b']


def test_group_by_tag_and_category():
    items = [
        make_post('One', 1, tags=['python', 'Astro'], category='Dev'),
        make_post('Two', 2, tags=['python', 'python'], category='dev'),
        make_post('Three', 3, sticky=1, tags=['life']),
    ]
    tags = group_by_tag(items)
    assert list(tags) == ['Astro', 'life', 'python']
    assert [p['title'] for p in tags['python']] == ['Two', 'One']

    categories = group_by_category(items)
    assert set(categories) == {'Dev', 'dev'}
    assert 'Three' not in [p['title'] for group in categories.values() for p in group]
