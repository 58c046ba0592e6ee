import pytest

from storefront import db
from storefront.models import Category, DashboardStats, Product

BASE = '/api/admin/categories'


def _create(client, headers, **body):
    return client.post(BASE, json=body, headers=headers)


@pytest.fixture
def electronics(client, admin_headers):
    return _create(client, admin_headers, name='Electronics').get_json()['category']


def test_list_requires_admin(client, customer_headers):
    assert client.get(BASE).status_code == 401
    assert client.get(BASE, headers=customer_headers).status_code == 403


def test_create_derives_slug_and_records_author(client, admin_headers, admin_user):
    response = _create(client, admin_headers, name="Men's Shoes & Boots", description='Footwear')

    assert response.status_code == 201
    body = response.get_json()
    assert body['message'] == 'Category created successfully'
    assert body['category']['slug'] == 'mens-shoes-boots'
    assert body['category']['parent'] is None
    assert body['category']['created_by'] == admin_user.id


def test_create_keeps_explicit_slug(client, admin_headers):
    body = _create(client, admin_headers, name='Shoes', slug='Footwear-Shop').get_json()
    assert body['category']['slug'] == 'footwear-shop'


def test_create_rejects_duplicate_name(client, admin_headers, electronics):
    response = _create(client, admin_headers, name='Electronics', slug='other')

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Category with this name already exists'


def test_create_rejects_duplicate_slug(client, admin_headers, electronics):
    response = _create(client, admin_headers, name='Gadgets', slug='electronics')

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Category with this slug already exists'


def test_create_validates_body(client, admin_headers):
    response = _create(client, admin_headers, name='x')

    assert response.status_code == 400
    body = response.get_json()
    assert body['message'] == 'Validation error'
    assert body['errors'][0].startswith('name:')


def test_create_with_unknown_parent(client, admin_headers):
    response = _create(client, admin_headers, name='Phones', parent=999)

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Parent category not found'


def test_list_flat_and_hierarchy(client, admin_headers, electronics):
    _create(client, admin_headers, name='Phones', parent=electronics['_id'])
    _create(client, admin_headers, name='Books')

    flat = client.get(BASE, headers=admin_headers).get_json()
    assert {c['name'] for c in flat['categories']} == {'Electronics', 'Phones', 'Books'}

    tree = client.get(f'{BASE}?hierarchy=true', headers=admin_headers).get_json()
    roots = {node['name']: node for node in tree['categories']}
    assert set(roots) == {'Electronics', 'Books'}
    assert [child['name'] for child in roots['Electronics']['children']] == ['Phones']
    assert len(tree['flat']) == 3


def test_search_matches_name_slug_or_description(client, admin_headers):
    _create(client, admin_headers, name='Garden', description='Outdoor tools')
    _create(client, admin_headers, name='Kitchen')

    body = client.get(f'{BASE}?search=outdoor', headers=admin_headers).get_json()
    assert [c['name'] for c in body['categories']] == ['Garden']


def test_list_is_refreshed_after_mutation(client, admin_headers):
    assert client.get(BASE, headers=admin_headers).get_json()['categories'] == []

    _create(client, admin_headers, name='Books')

    assert len(client.get(BASE, headers=admin_headers).get_json()['categories']) == 1


def test_get_single_category(client, admin_headers, electronics):
    response = client.get(f"{BASE}/{electronics['_id']}", headers=admin_headers)
    assert response.get_json()['category']['name'] == 'Electronics'

    assert client.get(f'{BASE}/999', headers=admin_headers).status_code == 404


def test_update_regenerates_slug_from_new_name(client, admin_headers, electronics):
    response = client.put(f"{BASE}/{electronics['_id']}", json={'name': 'Consumer Electronics'},
                          headers=admin_headers)

    assert response.status_code == 200
    body = response.get_json()
    assert body['message'] == 'Category updated successfully'
    assert body['category']['slug'] == 'consumer-electronics'


def test_update_rejects_name_without_slug_characters(client, admin_headers, electronics):
    response = client.put(f"{BASE}/{electronics['_id']}", json={'name': '!!'}, headers=admin_headers)

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Could not derive a slug from the category name'
    stored = db.session.get(Category, electronics['_id'])
    assert stored.name == 'Electronics'
    assert stored.slug == 'electronics'


def test_update_can_clear_parent(client, admin_headers, electronics):
    phones = _create(client, admin_headers, name='Phones', parent=electronics['_id']).get_json()['category']

    body = client.put(f"{BASE}/{phones['_id']}", json={'parent': None}, headers=admin_headers).get_json()
    assert body['category']['parent'] is None


def test_update_rejects_self_parent(client, admin_headers, electronics):
    response = client.put(f"{BASE}/{electronics['_id']}", json={'parent': electronics['_id']},
                          headers=admin_headers)

    assert response.status_code == 400
    assert response.get_json()['message'] == 'A category cannot be its own parent'


def test_update_rejects_parent_cycle(client, admin_headers, electronics):
    phones = _create(client, admin_headers, name='Phones', parent=electronics['_id']).get_json()['category']
    android = _create(client, admin_headers, name='Android', parent=phones['_id']).get_json()['category']

    response = client.put(f"{BASE}/{electronics['_id']}", json={'parent': android['_id']},
                          headers=admin_headers)

    assert response.status_code == 400
    assert db.session.get(Category, electronics['_id']).parent_id is None


def test_update_missing_category(client, admin_headers):
    response = client.put(f'{BASE}/999', json={'name': 'Nothing'}, headers=admin_headers)
    assert response.status_code == 404


def test_delete_category(client, admin_headers, electronics):
    response = client.delete(f"{BASE}/{electronics['_id']}", headers=admin_headers)

    assert response.status_code == 200
    assert response.get_json()['message'] == 'Category deleted successfully'
    assert db.session.get(Category, electronics['_id']) is None


def test_delete_refuses_category_in_use(client, admin_headers, electronics):
    db.session.add(Product(name='Phone', category='Electronics', price=300.0, stock=3))
    db.session.commit()

    response = client.delete(f"{BASE}/{electronics['_id']}", headers=admin_headers)

    assert response.status_code == 400
    assert 'being used by 1 product(s)' in response.get_json()['message']


def test_delete_refuses_category_with_children(client, admin_headers, electronics):
    _create(client, admin_headers, name='Phones', parent=electronics['_id'])

    response = client.delete(f"{BASE}/{electronics['_id']}", headers=admin_headers)

    assert response.status_code == 400
    assert 'subcategory' in response.get_json()['message']


def test_mutations_are_recorded_as_activities(client, admin_headers, electronics):
    client.put(f"{BASE}/{electronics['_id']}", json={'description': 'Gadgets'}, headers=admin_headers)
    client.delete(f"{BASE}/{electronics['_id']}", headers=admin_headers)

    types = [a['type'] for a in DashboardStats.current().recent_activities]
    assert types == ['category_deleted', 'category_updated', 'category_added']
