"""
此模块定义了后台分类 (Category) 管理相关的 API 端点。
(在 storefront/__init__.py 中以 /api/admin/categories 前缀注册)

主要功能 (需要管理员令牌 @admin_required):
- 分类列表，支持关键字搜索 (名称/描述/slug) 和层级结构 (hierarchy=true)。
- 分类的 CRUD 操作，slug 未提供时由名称生成。
- 更新时拒绝会导致 parent 成环的修改；删除时拒绝仍被商品或子分类使用的分类。
- 列表结果缓存在 Flask-Caching 中，任何写操作都会使缓存分组失效。

依赖模型: Category, Product, DashboardStats
使用 Flask 蓝图: categories_bp

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from flask import Blueprint, jsonify, request, current_app
from flask_jwt_extended import get_jwt_identity
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storefront import db
from storefront.models import Category, Product, DashboardStats
from storefront.schemas import CategoryPayload, CategoryUpdatePayload
from storefront.utils.auth_utils import admin_required
from storefront.utils.cache_manager import DataCache, KEY_PREFIX, TTL
from storefront.utils.category_tree import (
    CategoryCycleError, build_category_tree, collect_descendant_ids,
)
from storefront.utils.slug_generator import generate_slug
from storefront.utils.validation import validate_json

categories_bp = Blueprint('categories', __name__)

CATEGORY_CACHE_GROUP = 'admin_categories'


def _current_user_id():
    identity = get_jwt_identity()
    try:
        return int(identity)
    except (TypeError, ValueError):
        return None


def _error(message, status):
    return jsonify({'success': False, 'message': message}), status


def _find_conflict(name, slug, exclude_id=None):
    """返回名称或 slug 冲突的提示信息，没有冲突返回 None"""
    query = Category.query.filter(or_(Category.name == name, Category.slug == slug))
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    existing = query.first()
    if existing is None:
        return None
    if existing.name == name:
        return 'Category with this name already exists'
    return 'Category with this slug already exists'


def _record_activity(activity_type, name, category_id, details=None):
    try:
        DashboardStats.add_activity(activity_type, name=name, target_id=category_id,
                                    performed_by=_current_user_id(), details=details)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning(f"记录分类活动失败: {e}")


@DataCache.cached(KEY_PREFIX['CATEGORY'] + 'list', ttl=TTL['DATA_MEDIUM'], group=CATEGORY_CACHE_GROUP)
def _load_categories(search, hierarchy):
    query = Category.query
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Category.name.ilike(pattern),
            Category.description.ilike(pattern),
            Category.slug.ilike(pattern),
        ))
    categories = [c.to_dict() for c in query.order_by(Category.created_at.desc(), Category.id.desc()).all()]

    if not hierarchy:
        return {'categories': categories}
    return {'categories': build_category_tree(categories), 'flat': categories}


@categories_bp.route('/', methods=['GET'])
@admin_required
def get_categories():
    """获取分类列表 (?search=关键字, ?hierarchy=true 返回树结构)"""
    search = (request.args.get('search') or '').strip()
    hierarchy = request.args.get('hierarchy', 'false').lower() == 'true'

    try:
        result = _load_categories(search, hierarchy)
    except CategoryCycleError as e:
        current_app.logger.error(f"分类层级数据成环: {e}")
        return _error('Category hierarchy contains a cycle', 500)

    return jsonify({'success': True, **result}), 200


@categories_bp.route('/<int:category_id>', methods=['GET'])
@admin_required
def get_category(category_id):
    """获取指定ID的分类"""
    category = db.session.get(Category, category_id)
    if category is None:
        return _error('Category not found', 404)
    return jsonify({'success': True, 'category': category.to_dict()}), 200


@categories_bp.route('/', methods=['POST'])
@admin_required
@validate_json(CategoryPayload)
def create_category(payload):
    """创建新分类"""
    slug = payload.slug or generate_slug(payload.name)
    if not slug:
        return _error('Could not derive a slug from the category name', 400)

    conflict = _find_conflict(payload.name, slug)
    if conflict:
        return _error(conflict, 400)

    if payload.parent is not None and db.session.get(Category, payload.parent) is None:
        return _error('Parent category not found', 400)

    user_id = _current_user_id()
    category = Category(
        name=payload.name,
        slug=slug,
        description=payload.description or '',
        parent_id=payload.parent,
        is_active=True if payload.is_active is None else payload.is_active,
        created_by=user_id,
        updated_by=user_id,
    )

    try:
        db.session.add(category)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return _error('Category with this name or slug already exists', 400)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"创建分类失败: {e}")
        return _error('Server error', 500)

    DataCache.invalidate_group(CATEGORY_CACHE_GROUP)
    _record_activity('category_added', category.name, category.id)
    current_app.logger.info(f"分类已创建: {category.name} ({category.slug})")

    return jsonify({
        'success': True,
        'message': 'Category created successfully',
        'category': category.to_dict()
    }), 201


@categories_bp.route('/<int:category_id>', methods=['PUT'])
@admin_required
@validate_json(CategoryUpdatePayload)
def update_category(category_id, payload):
    """更新分类信息"""
    category = db.session.get(Category, category_id)
    if category is None:
        return _error('Category not found', 404)

    fields = payload.model_fields_set

    new_slug = None
    if payload.name or payload.slug:
        new_name = payload.name or category.name
        new_slug = payload.slug or generate_slug(new_name)
        if not new_slug:
            return _error('Could not derive a slug from the category name', 400)
        conflict = _find_conflict(new_name, new_slug, exclude_id=category.id)
        if conflict:
            return _error(conflict, 400)

    if 'parent' in fields and payload.parent is not None:
        if payload.parent == category.id:
            return _error('A category cannot be its own parent', 400)
        if db.session.get(Category, payload.parent) is None:
            return _error('Parent category not found', 400)
        all_categories = [c.to_dict() for c in Category.query.all()]
        if str(payload.parent) in collect_descendant_ids(all_categories, category.id):
            return _error('A category cannot be moved under one of its descendants', 400)

    if payload.name:
        category.name = payload.name
    if 'description' in fields:
        category.description = payload.description or ''
    if new_slug:
        category.slug = new_slug
    if 'parent' in fields:
        category.parent_id = payload.parent
    if payload.is_active is not None:
        category.is_active = payload.is_active
    category.updated_by = _current_user_id()

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return _error('Category with this name or slug already exists', 400)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"更新分类失败: {e}")
        return _error('Server error', 500)

    DataCache.invalidate_group(CATEGORY_CACHE_GROUP)
    _record_activity('category_updated', category.name, category.id, details={'fields': sorted(fields)})

    return jsonify({
        'success': True,
        'message': 'Category updated successfully',
        'category': category.to_dict()
    }), 200


@categories_bp.route('/<int:category_id>', methods=['DELETE'])
@admin_required
def delete_category(category_id):
    """删除分类 (不可恢复)"""
    category = db.session.get(Category, category_id)
    if category is None:
        return _error('Category not found', 404)

    products_with_category = Product.query.filter(
        Product.category == category.name, Product.status != 'deleted'
    ).count()
    if products_with_category > 0:
        return _error(
            f'Cannot delete category. It is being used by {products_with_category} product(s). '
            'Please update or remove those products first.', 400)

    child_count = category.children.count()
    if child_count > 0:
        return _error(
            f'Cannot delete category. It has {child_count} subcategory(ies). '
            'Please move or delete them first.', 400)

    deleted_name, deleted_id = category.name, category.id

    try:
        db.session.delete(category)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"删除分类失败: {e}")
        return _error('Server error', 500)

    DataCache.invalidate_group(CATEGORY_CACHE_GROUP)
    _record_activity('category_deleted', deleted_name, deleted_id)
    current_app.logger.info(f"分类已删除: {deleted_name}")

    return jsonify({
        'success': True,
        'message': 'Category deleted successfully'
    }), 200
