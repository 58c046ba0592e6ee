"""
管理员运维API路由
(在 storefront/__init__.py 中以 /api/admin 前缀注册)

主要功能 (需要管理员令牌):
- 查看 / 重置错误统计
- 查看数据缓存命中统计，手动使分类列表缓存失效

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""

from flask import Blueprint, jsonify, current_app

from storefront.utils.auth_utils import admin_required
from storefront.utils.cache_manager import DataCache
from storefront.utils.error_handler import ErrorHandler

admin_bp = Blueprint('admin_bp', __name__)


@admin_bp.route('/errors/stats', methods=['GET'])
@admin_required
def get_error_stats():
    """获取错误统计信息"""
    return jsonify({'success': True, 'stats': ErrorHandler.get_error_stats()}), 200


@admin_bp.route('/errors/stats/reset', methods=['POST'])
@admin_required
def reset_error_stats():
    """重置错误统计"""
    current_app.logger.info("错误统计已被管理员重置")
    return jsonify(ErrorHandler.reset_stats()), 200


@admin_bp.route('/cache/stats', methods=['GET'])
@admin_required
def get_cache_stats():
    """获取数据缓存统计信息"""
    return jsonify({
        'success': True,
        'backend': current_app.config.get('CACHE_TYPE'),
        'stats': DataCache.get_stats()
    }), 200


@admin_bp.route('/cache/categories/invalidate', methods=['POST'])
@admin_required
def invalidate_category_cache():
    """使分类列表缓存失效"""
    from storefront.routes.categories import CATEGORY_CACHE_GROUP

    if not DataCache.invalidate_group(CATEGORY_CACHE_GROUP):
        return jsonify({'success': False, 'message': 'Failed to invalidate category cache'}), 500
    return jsonify({'success': True, 'message': 'Category cache invalidated'}), 200
