import threading

from storefront.models import Category, User
from storefront.utils.cache_manager import DataCache
from storefront.utils.error_handler import ErrorHandler
from storefront.utils.init_db import DEFAULT_CATEGORIES, init_admin, init_categories


def test_unknown_route_answers_json_404(client):
    response = client.get('/api/dashboard/nope')

    assert response.status_code == 404
    body = response.get_json()
    assert body['success'] is False
    assert body['message'] == 'Dashboard resource not found'


def test_error_stats_count_handled_errors(client, admin_headers):
    ErrorHandler.reset_stats()
    client.get('/api/admin/categories/999', headers=admin_headers)
    client.get('/api/not-a-route')

    stats = client.get('/api/admin/errors/stats', headers=admin_headers).get_json()['stats']
    assert stats['total_count'] == 1
    assert stats['by_endpoint'] == {'/api/not-a-route': 1}


def test_reset_error_stats(client, admin_headers):
    client.get('/api/not-a-route')

    response = client.post('/api/admin/errors/stats/reset', headers=admin_headers)
    assert response.get_json()['success'] is True
    assert ErrorHandler.get_error_stats()['total_count'] == 0


def test_cache_stats_and_invalidate(client, admin_headers):
    client.get('/api/admin/categories', headers=admin_headers)

    stats = client.get('/api/admin/cache/stats', headers=admin_headers).get_json()
    assert stats['backend'] == 'SimpleCache'
    assert stats['stats']['misses'] >= 1

    response = client.post('/api/admin/cache/categories/invalidate', headers=admin_headers)
    assert response.get_json()['message'] == 'Category cache invalidated'


def test_admin_endpoints_require_admin(client, customer_headers):
    assert client.get('/api/admin/errors/stats', headers=customer_headers).status_code == 403


def test_seed_data_is_idempotent(app):
    admin = init_admin('Owner@Shop.test', 'owner-pass')
    assert admin.is_admin is True
    assert init_admin('owner@shop.test', 'other').id == admin.id

    assert init_categories(created_by=admin.id) == len(DEFAULT_CATEGORIES)
    assert init_categories(created_by=admin.id) == 0

    phones = Category.query.filter_by(name='Phones').one()
    assert phones.parent.name == 'Electronics'
    assert Category.query.filter_by(name='Home & Kitchen').one().slug == 'home-kitchen'
    assert User.query.count() == 1


def test_cache_counters_are_exact_across_threads(app):
    @DataCache.cached('threaded', ttl=60)
    def lookup(key):
        return {'key': key}

    before = DataCache.get_stats()
    workers, calls = 8, 250

    def run():
        with app.app_context():
            for i in range(calls):
                lookup(i % 5)

    threads = [threading.Thread(target=run) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    after = DataCache.get_stats()
    looked_up = (after['hits'] - before['hits']) + (after['misses'] - before['misses'])
    assert looked_up == workers * calls
