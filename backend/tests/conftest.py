import pytest
from flask_jwt_extended import create_access_token

from storefront import create_app, db
from storefront.models import User

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'CACHE_TYPE': 'SimpleCache',
    'RATELIMIT_STORAGE_URI': 'memory://',
    'RATELIMIT_ENABLED': False,
    'LOG_FILE': None,
    'JWT_SECRET_KEY': 'test-jwt-secret-key-with-enough-length',
    'SECRET_KEY': 'test-secret-key',
    'FRONTEND_URL': 'http://shop.test',
}


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(email, password, is_admin=False):
    user = User(email=email, username=email.split('@')[0], is_admin=is_admin)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_user(app):
    return _make_user('admin@shop.test', 'admin-pass', is_admin=True)


@pytest.fixture
def customer_user(app):
    return _make_user('customer@shop.test', 'customer-pass')


def _token_for(user):
    return create_access_token(
        identity=str(user.id),
        additional_claims={'is_admin': bool(user.is_admin), 'email': user.email}
    )


@pytest.fixture
def admin_headers(admin_user):
    return {'Authorization': f'Bearer {_token_for(admin_user)}'}


@pytest.fixture
def customer_headers(customer_user):
    return {'Authorization': f'Bearer {_token_for(customer_user)}'}


@pytest.fixture
def admin_token(admin_user):
    return _token_for(admin_user)


class _AdapterResponse:
    """把 werkzeug 测试响应包装成 requests.Response 的常用接口"""

    def __init__(self, response):
        self._response = response
        self.status_code = response.status_code
        self.headers = response.headers
        self.reason = response.status.split(' ', 1)[1] if ' ' in response.status else ''

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        data = self._response.get_json(silent=True)
        if data is None:
            raise ValueError('Response body is not JSON')
        return data


class FlaskSessionAdapter:
    """把 requests.Session.request 调用转发到 Flask 测试客户端"""

    def __init__(self, test_client, base_url):
        self.test_client = test_client
        self.base_url = base_url.rstrip('/')
        self.calls = []

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        self.calls.append((method, url))
        path = url[len(self.base_url):] if url.startswith(self.base_url) else url
        response = self.test_client.open(
            path, method=method, headers=headers or {}, query_string=params or {}, json=json)
        return _AdapterResponse(response)


@pytest.fixture
def session_adapter(client):
    return FlaskSessionAdapter(client, 'http://api.test')
