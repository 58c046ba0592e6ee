"""
后台分类管理客户端包。

对外暴露 CategoryStore 及其错误类型，可通过 storefront.client.CategoryStore 访问。
"""
from .errors import AuthMissing, CategoryClientError, MalformedResponse, NetworkFailure, ServerError
from .forms import CategoryForm
from .state import CategoryState
from .category_store import CategoryStore, storage_token_provider

__all__ = [
    'CategoryStore',
    'CategoryState',
    'CategoryForm',
    'storage_token_provider',
    'CategoryClientError',
    'AuthMissing',
    'NetworkFailure',
    'ServerError',
    'MalformedResponse',
]
