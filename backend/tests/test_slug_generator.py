import pytest

from storefront import db
from storefront.models import Category
from storefront.utils.slug_generator import generate_slug, generate_unique_slug, is_valid_slug


@pytest.mark.parametrize('text, expected', [
    ("Men's Shoes & Boots", 'mens-shoes-boots'),
    ('  Home   Kitchen  ', 'home-kitchen'),
    ('under_score--dash', 'under-score-dash'),
    ('Café Crème', 'cafe-creme'),
    ('', ''),
    ('!!!', ''),
])
def test_generate_slug(text, expected):
    assert generate_slug(text) == expected


def test_generate_slug_transliterates_chinese():
    assert generate_slug('电子产品') == 'dian-zi-chan-pin'


@pytest.mark.parametrize('text', ["Men's Shoes & Boots", 'A  b__c', '-Lead and trail-', '电子 Gadgets'])
def test_generate_slug_is_idempotent(text):
    once = generate_slug(text)
    assert generate_slug(once) == once


def test_is_valid_slug():
    assert is_valid_slug('mens-shoes')
    assert not is_valid_slug('Mens-Shoes')
    assert not is_valid_slug('double--dash')
    assert not is_valid_slug('-leading')


def test_generate_unique_slug_appends_counter(app):
    db.session.add(Category(name='Shoes', slug='shoes'))
    db.session.commit()

    assert generate_unique_slug('Shoes', Category) == 'shoes-1'


def test_generate_unique_slug_ignores_excluded_record(app):
    category = Category(name='Shoes', slug='shoes')
    db.session.add(category)
    db.session.commit()

    assert generate_unique_slug('Shoes', Category, exclude_id=category.id) == 'shoes'
