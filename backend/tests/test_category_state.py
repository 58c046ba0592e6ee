import pytest

from storefront.client import state as reducers
from storefront.client.forms import (
    CategoryForm, change_name, form_from_category, form_payload, parent_options,
)
from storefront.client.state import CategoryState

CATEGORIES = [
    {'_id': 1, 'name': 'Electronics', 'slug': 'electronics', 'description': '', 'parent': None},
    {'_id': 2, 'name': 'Phones', 'slug': 'phones', 'description': 'Mobile', 'parent': 1},
    {'_id': 3, 'name': 'Android', 'slug': 'android', 'description': '', 'parent': 2},
    {'_id': 4, 'name': 'Books', 'slug': 'books', 'description': '', 'parent': None},
]


def test_change_name_generates_slug_while_untouched():
    form = change_name(CategoryForm(), "Men's")
    form = change_name(form, "Men's Shoes")

    assert form.slug == 'mens-shoes'


def test_change_name_keeps_custom_slug():
    form = CategoryForm(name='Shoes', slug='footwear')

    assert change_name(form, 'Sneakers').slug == 'footwear'


def test_change_name_when_editing_auto_slug_category():
    form = form_from_category(CATEGORIES[1])

    assert change_name(form, 'Smart Phones').slug == 'smart-phones'


def test_form_from_category_stringifies_parent():
    assert form_from_category(CATEGORIES[1]) == CategoryForm(
        name='Phones', slug='phones', description='Mobile', parent='1')
    assert form_from_category({'name': 'X', 'parent': {'_id': 7}}).parent == '7'


def test_form_payload_maps_empty_parent_to_none():
    payload = form_payload(CategoryForm(name=' Books ', slug='books', parent=''))

    assert payload == {'name': 'Books', 'slug': 'books', 'description': '', 'parent': None}


def test_parent_options_exclude_category_and_descendants():
    options = parent_options(CATEGORIES, exclude_id=1)

    assert options == [{'value': '4', 'label': 'Books'}]
    assert len(parent_options(CATEGORIES)) == 4


def test_fetch_failure_keeps_previous_categories():
    state = reducers.fetch_succeeded(CategoryState(), CATEGORIES, [])
    state = reducers.fetch_failed(reducers.fetch_started(state), 'Network error: down')

    assert state.categories == CATEGORIES
    assert state.error == 'Network error: down'
    assert state.loading is False


def test_mutation_success_closes_form_and_stamps_time():
    state = reducers.change_field(reducers.open_add_form(CategoryState()), 'name', 'Books')
    state = reducers.mutation_succeeded(reducers.mutation_started(state), 'Created', now=10.0)

    assert state.success == 'Created'
    assert state.success_at == 10.0
    assert state.show_form is False
    assert state.form == CategoryForm()


def test_mutation_failure_keeps_form_open():
    state = reducers.change_field(reducers.open_add_form(CategoryState()), 'name', 'Books')
    state = reducers.mutation_failed(reducers.mutation_started(state, deleting_category_id=3), 'Boom')

    assert state.error == 'Boom'
    assert state.show_form is True
    assert state.form.name == 'Books'
    assert state.deleting_category_id is None


def test_open_edit_form_prefills_form():
    state = reducers.open_edit_form(CategoryState(), CATEGORIES[2])

    assert state.editing_category == CATEGORIES[2]
    assert state.form.parent == '2'
    assert reducers.close_form(state).editing_category is None


def test_change_field_rejects_unknown_field():
    with pytest.raises(ValueError):
        reducers.change_field(CategoryState(), 'icon', 'x')


def test_success_clears_after_timeout():
    state = reducers.mutation_succeeded(CategoryState(), 'Saved', now=100.0)

    assert reducers.clear_expired_success(state, now=102.9, timeout=3.0).success == 'Saved'
    cleared = reducers.clear_expired_success(state, now=103.0, timeout=3.0)
    assert cleared.success is None
    assert cleared.success_at is None


def test_reducers_do_not_mutate_input():
    state = CategoryState()
    reducers.set_search_term(state, 'phones')

    assert state.search_term == ''
