"""
后台分类管理客户端 (CategoryStore)

通过 REST API (/api/admin/categories) 同步分类数据，在本地维护扁平列表、分类树和表单状态。

主要功能:
- fetch_categories: 拉取列表 (可选层级结构与搜索)，失败时保留之前的数据
- add_category / edit_category / delete_category: 需要登录令牌，成功后整体重新拉取，不做乐观更新
- 表单辅助: 打开/关闭表单、修改字段 (名称变化时自动生成 slug)、搜索关键字
- 成功提示在 success_timeout 秒后自动清除

所有错误都转换为 state.error 中的一条提示文本，公开方法只返回 True/False。
"""

import logging
import time

import requests

from storefront.client import state as reducers
from storefront.client.errors import (
    AuthMissing, CategoryClientError, MalformedResponse, NetworkFailure, ServerError,
)
from storefront.client.forms import form_payload, parent_options
from storefront.client.state import CategoryState
from storefront.utils.category_tree import (
    CategoryCycleError, build_category_tree, flatten_category_tree,
)

logger = logging.getLogger(__name__)

CATEGORIES_PATH = '/api/admin/categories'
SUCCESS_MESSAGE_TIMEOUT = 3.0  # 秒
REQUEST_TIMEOUT = 10  # 秒
TOKEN_STORAGE_KEYS = ('adminToken', 'token')


def storage_token_provider(storage):
    """
    从键值存储 (例如保存的会话) 中读取令牌，优先 adminToken，其次 token
    """
    def provider():
        for key in TOKEN_STORAGE_KEYS:
            token = storage.get(key)
            if token:
                return token
        return None
    return provider


def _decode_json(response):
    content_type = response.headers.get('Content-Type', '')
    if 'application/json' not in content_type:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _server_message(body, response):
    if isinstance(body, dict):
        message = body.get('message') or body.get('error')
        if message:
            return str(message)
    return response.reason or None


def _is_record_list(value):
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


class CategoryStore:
    """分类管理客户端"""

    def __init__(self, base_url, token_provider, session=None, confirm=None,
                 clock=time.monotonic, success_timeout=SUCCESS_MESSAGE_TIMEOUT,
                 timeout=REQUEST_TIMEOUT, include_hierarchy=False, enable_search=True):
        """
        Args:
            base_url: 后端地址，例如 http://localhost:5000
            token_provider: 无参可调用对象，返回当前令牌或 None
            session: requests.Session (测试时可替换)
            confirm: 删除前调用 confirm(category_id)，返回 False 时取消删除
            clock: 返回秒数的时钟函数，用于成功提示的自动清除
            timeout: 单个请求超时时间(秒)
            include_hierarchy: fetch_categories 默认是否请求服务端构建的层级结构
            enable_search: fetch_categories 默认是否带上 state.search_term
        """
        self.base_url = base_url.rstrip('/')
        self.token_provider = token_provider
        self.session = session or requests.Session()
        self.confirm = confirm
        self.clock = clock
        self.success_timeout = success_timeout
        self.timeout = timeout
        self.include_hierarchy = include_hierarchy
        self.enable_search = enable_search
        self._state = CategoryState()

    @property
    def state(self):
        self._state = reducers.clear_expired_success(self._state, self.clock(), self.success_timeout)
        return self._state

    # ------------------------------ transport ------------------------------

    def _request(self, method, path='', token=None, **kwargs):
        url = f"{self.base_url}{CATEGORIES_PATH}{path}"
        headers = {'Accept': 'application/json'}
        if token:
            headers['Authorization'] = f'Bearer {token}'

        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise NetworkFailure(e) from e

        body = _decode_json(response)
        if not response.ok:
            raise ServerError(response.status_code, _server_message(body, response))
        if body is None:
            raise MalformedResponse()
        return body

    # -------------------------------- fetch --------------------------------

    def fetch_categories(self, hierarchy=None, search=None):
        """拉取分类列表，成功返回 True"""
        if hierarchy is None:
            hierarchy = self.include_hierarchy
        if search is None and self.enable_search:
            search = self._state.search_term

        params = {}
        if hierarchy:
            params['hierarchy'] = 'true'
        if search:
            params['search'] = search

        self._state = reducers.fetch_started(self._state)
        try:
            body = self._request('GET', token=self.token_provider(), params=params)
            if not isinstance(body, dict) or not _is_record_list(body.get('categories')):
                raise MalformedResponse()

            try:
                if hierarchy:
                    tree = body['categories']
                    flat = body.get('flat') or flatten_category_tree(tree)
                else:
                    flat = body['categories']
                    tree = build_category_tree(flat)
            except (AttributeError, TypeError) as e:
                raise MalformedResponse() from e
            if not _is_record_list(flat):
                raise MalformedResponse()
        except CategoryClientError as e:
            logger.warning(f"获取分类失败: {e.display_message}")
            self._state = reducers.fetch_failed(self._state, e.display_message)
            return False
        except CategoryCycleError as e:
            logger.warning(f"分类数据成环: {e}")
            self._state = reducers.fetch_failed(self._state, 'Category hierarchy contains a cycle')
            return False

        self._state = reducers.fetch_succeeded(self._state, flat, tree)
        return True

    # ------------------------------ mutations ------------------------------

    def _mutate(self, method, path, payload=None, deleting_category_id=None):
        token = self.token_provider()
        if not token:
            self._state = reducers.mutation_failed(self._state, AuthMissing().display_message)
            return False

        self._state = reducers.mutation_started(self._state, deleting_category_id)
        kwargs = {'json': payload} if payload is not None else {}
        try:
            body = self._request(method, path, token=token, **kwargs)
        except CategoryClientError as e:
            logger.warning(f"{method} {CATEGORIES_PATH}{path} 失败: {e.display_message}")
            self._state = reducers.mutation_failed(self._state, e.display_message)
            return False

        message = body.get('message') if isinstance(body, dict) else None
        self._state = reducers.mutation_succeeded(
            self._state, message or 'Operation completed successfully', self.clock())
        logger.info(f"{method} {CATEGORIES_PATH}{path} 成功")

        self.fetch_categories()
        return True

    def add_category(self, form=None):
        """创建分类，默认提交当前表单"""
        form = form or self._state.form
        return self._mutate('POST', '', form_payload(form))

    def edit_category(self, category_id, form=None):
        """更新分类，默认提交当前表单"""
        form = form or self._state.form
        return self._mutate('PUT', f'/{category_id}', form_payload(form))

    def delete_category(self, category_id, confirm=None):
        """删除分类，确认被拒绝时不发送任何请求"""
        confirm = confirm or self.confirm
        if confirm is not None and not confirm(category_id):
            return False
        return self._mutate('DELETE', f'/{category_id}', deleting_category_id=category_id)

    # -------------------------------- form ---------------------------------

    def open_add_form(self):
        self._state = reducers.open_add_form(self._state)

    def open_edit_form(self, category):
        self._state = reducers.open_edit_form(self._state, category)

    def close_form(self):
        self._state = reducers.close_form(self._state)

    def change_field(self, name, value):
        self._state = reducers.change_field(self._state, name, value)

    def set_search_term(self, term):
        self._state = reducers.set_search_term(self._state, term)

    def parent_options(self):
        editing = self._state.editing_category
        return parent_options(self._state.categories, editing['_id'] if editing else None)
