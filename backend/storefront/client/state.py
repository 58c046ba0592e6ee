"""
分类管理的状态容器。

CategoryState 是不可变的数据类，每个动作对应一个纯函数 (reducer)，
接收旧状态并返回新状态，不做任何网络或时间相关的副作用 (时间由调用方传入)。
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from storefront.client.forms import FORM_FIELDS, CategoryForm, change_name, form_from_category


@dataclass(frozen=True)
class CategoryState:
    categories: List[Dict[str, Any]] = field(default_factory=list)
    category_tree: List[Dict[str, Any]] = field(default_factory=list)
    loading: bool = True
    error: Optional[str] = None
    success: Optional[str] = None
    success_at: Optional[float] = None
    show_form: bool = False
    editing_category: Optional[Dict[str, Any]] = None
    deleting_category_id: Optional[Any] = None
    search_term: str = ''
    form: CategoryForm = field(default_factory=CategoryForm)


# ---------------------------------- fetch ----------------------------------

def fetch_started(state: CategoryState) -> CategoryState:
    return replace(state, loading=True, error=None)


def fetch_succeeded(state: CategoryState, categories, category_tree) -> CategoryState:
    return replace(state, loading=False, error=None,
                   categories=list(categories), category_tree=list(category_tree))


def fetch_failed(state: CategoryState, message: str) -> CategoryState:
    # 保留之前的分类列表和树
    return replace(state, loading=False, error=message)


# -------------------------------- mutations --------------------------------

def mutation_started(state: CategoryState, deleting_category_id=None) -> CategoryState:
    return replace(state, loading=True, error=None, success=None, success_at=None,
                   deleting_category_id=deleting_category_id)


def mutation_succeeded(state: CategoryState, message: str, now: float) -> CategoryState:
    return replace(state, loading=False, error=None, success=message, success_at=now,
                   show_form=False, editing_category=None, deleting_category_id=None,
                   form=CategoryForm())


def mutation_failed(state: CategoryState, message: str) -> CategoryState:
    return replace(state, loading=False, error=message, deleting_category_id=None)


# ---------------------------------- form -----------------------------------

def open_add_form(state: CategoryState) -> CategoryState:
    return replace(state, show_form=True, editing_category=None, form=CategoryForm(), error=None)


def open_edit_form(state: CategoryState, category: Dict[str, Any]) -> CategoryState:
    return replace(state, show_form=True, editing_category=category,
                   form=form_from_category(category), error=None)


def close_form(state: CategoryState) -> CategoryState:
    return replace(state, show_form=False, editing_category=None, form=CategoryForm())


def change_field(state: CategoryState, name: str, value) -> CategoryState:
    if name not in FORM_FIELDS:
        raise ValueError(f"Unknown form field: {name}")

    value = '' if value is None else str(value)
    if name == 'name':
        form = change_name(state.form, value)
    else:
        form = replace(state.form, **{name: value})
    return replace(state, form=form)


def set_search_term(state: CategoryState, term: str) -> CategoryState:
    return replace(state, search_term=term or '')


def clear_expired_success(state: CategoryState, now: float, timeout: float) -> CategoryState:
    """成功提示显示满 timeout 秒后清除"""
    if state.success is None or state.success_at is None:
        return state
    if now - state.success_at < timeout:
        return state
    return replace(state, success=None, success_at=None)
