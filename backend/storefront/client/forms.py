"""
分类表单草稿 (CategoryForm) 及其辅助函数。

表单字段与接口请求体一致: {name, slug, description, parent}，parent 在表单中以字符串保存，
空字符串表示顶级分类。
"""
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from storefront.utils.category_tree import collect_descendant_ids
from storefront.utils.slug_generator import generate_slug

FORM_FIELDS = ('name', 'slug', 'description', 'parent')


@dataclass(frozen=True)
class CategoryForm:
    name: str = ''
    slug: str = ''
    description: str = ''
    parent: str = ''


def _parent_value(parent) -> str:
    if isinstance(parent, dict):
        parent = parent.get('_id', parent.get('id'))
    return '' if parent is None else str(parent)


def change_name(form: CategoryForm, name: str) -> CategoryForm:
    """
    修改名称，并在 slug 仍是自动生成值时同步更新 slug

    slug 非空且不等于上一个名称生成的 slug 时，视为用户手动修改过，保持不变。
    """
    slug_is_custom = bool(form.slug) and form.slug != generate_slug(form.name)
    slug = form.slug if slug_is_custom else generate_slug(name)
    return replace(form, name=name, slug=slug)


def form_from_category(category: Dict[str, Any]) -> CategoryForm:
    """用已有分类填充编辑表单"""
    return CategoryForm(
        name=category.get('name') or '',
        slug=category.get('slug') or '',
        description=category.get('description') or '',
        parent=_parent_value(category.get('parent')),
    )


def form_payload(form: CategoryForm) -> Dict[str, Any]:
    """转换为接口请求体"""
    return {
        'name': form.name.strip(),
        'slug': form.slug.strip(),
        'description': form.description.strip(),
        'parent': form.parent or None,
    }


def parent_options(categories: List[Dict[str, Any]], exclude_id: Optional[Any] = None) -> List[Dict[str, str]]:
    """
    可选父分类列表

    编辑时排除分类自身及其所有后代，避免形成环。
    """
    excluded = set()
    if exclude_id is not None:
        excluded = collect_descendant_ids(categories, exclude_id) | {str(exclude_id)}

    options = [
        {'value': str(cat['_id']), 'label': cat.get('name') or ''}
        for cat in categories
        if str(cat['_id']) not in excluded
    ]
    return sorted(options, key=lambda option: option['label'].lower())
