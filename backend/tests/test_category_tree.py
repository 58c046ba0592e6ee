import pytest

from storefront.utils.category_tree import (
    CategoryCycleError, build_category_tree, collect_descendant_ids,
    count_tree_nodes, flatten_category_tree,
)


def _cat(cat_id, name, parent=None):
    return {'_id': cat_id, 'name': name, 'parent': parent}


@pytest.fixture
def categories():
    return [
        _cat(1, 'Electronics'),
        _cat(2, 'Phones', 1),
        _cat(3, 'Laptops', 1),
        _cat(4, 'Android', 2),
        _cat(5, 'Books'),
    ]


def test_builds_forest_in_input_order(categories):
    tree = build_category_tree(categories)

    assert [node['name'] for node in tree] == ['Electronics', 'Books']
    electronics = tree[0]
    assert [child['name'] for child in electronics['children']] == ['Phones', 'Laptops']
    assert electronics['children'][0]['children'][0]['name'] == 'Android'
    assert tree[1]['children'] == []


def test_every_category_appears_exactly_once(categories):
    tree = build_category_tree(categories)

    assert count_tree_nodes(tree) == len(categories)
    assert sorted(c['_id'] for c in flatten_category_tree(tree)) == [1, 2, 3, 4, 5]


def test_does_not_mutate_input(categories):
    build_category_tree(categories)
    assert all('children' not in cat for cat in categories)


def test_parent_ids_compare_as_strings():
    categories = [_cat('10', 'Root'), _cat(11, 'Child', 10)]
    tree = build_category_tree(categories)

    assert len(tree) == 1
    assert tree[0]['children'][0]['name'] == 'Child'


def test_populated_parent_object_is_accepted():
    categories = [_cat(1, 'Root'), _cat(2, 'Child', {'_id': 1, 'name': 'Root'})]
    tree = build_category_tree(categories)

    assert tree[0]['children'][0]['_id'] == 2


def test_dangling_parent_is_treated_as_root():
    tree = build_category_tree([_cat(1, 'Orphan', 99)])

    assert [node['name'] for node in tree] == ['Orphan']


def test_subtree_from_given_parent(categories):
    subtree = build_category_tree(categories, parent_id=1)

    assert [node['name'] for node in subtree] == ['Phones', 'Laptops']


def test_empty_input_gives_empty_forest():
    assert build_category_tree([]) == []


def test_two_node_cycle_raises():
    with pytest.raises(CategoryCycleError):
        build_category_tree([_cat(1, 'A', 2), _cat(2, 'B', 1)])


def test_self_parent_raises():
    with pytest.raises(CategoryCycleError):
        build_category_tree([_cat(1, 'Root'), _cat(2, 'Loop', 2)])


def test_cycle_below_a_root_raises():
    categories = [_cat(1, 'Root'), _cat(2, 'A', 3), _cat(3, 'B', 2), _cat(4, 'C', 1)]

    with pytest.raises(CategoryCycleError):
        build_category_tree(categories)


def test_collect_descendant_ids(categories):
    assert collect_descendant_ids(categories, 1) == {'2', '3', '4'}
    assert collect_descendant_ids(categories, '2') == {'4'}
    assert collect_descendant_ids(categories, 5) == set()


def test_collect_descendant_ids_terminates_on_cycle():
    assert collect_descendant_ids([_cat(1, 'A', 2), _cat(2, 'B', 1)], 1) == {'2'}


def test_children_report_their_parent(categories):
    def check(nodes):
        for node in nodes:
            for child in node['children']:
                assert str(child['parent']) == str(node['_id'])
            check(node['children'])

    check(build_category_tree(categories))
