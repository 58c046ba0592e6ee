"""
此模块定义了后台仪表盘相关的 API 端点。
(在 storefront/__init__.py 中以 /api/dashboard 前缀注册)

主要功能 (需要管理员令牌):
- 获取仪表盘统计数据，优先读取 5 分钟内的缓存 (?refresh=true 强制重新计算)。
- 缓存管理：手动刷新、清空、查看缓存状态。

依赖模型: DashboardStats
服务: dashboard_service
使用 Flask 蓝图: dashboard_bp

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError

from storefront import db
from storefront.models import DashboardStats
from storefront.services import dashboard_service
from storefront.utils.auth_utils import admin_required

dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.route('/stats', methods=['GET'])
@admin_required
def get_dashboard_stats():
    """获取仪表盘概览统计"""
    force_refresh = request.args.get('refresh', 'false').lower() == 'true'

    try:
        stats, cached = dashboard_service.get_or_refresh_stats(force=force_refresh)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"获取仪表盘统计失败: {e}")
        return jsonify({
            'success': False,
            'error': f'Error fetching dashboard stats: {e}'
        }), 500

    return jsonify({
        'success': True,
        'data': {
            'overview': stats.overview or {},
            'recentOrders': stats.recent_orders or [],
            'topRatedProducts': stats.top_rated_products or [],
        },
        'cached': cached,
        'lastUpdated': stats.last_updated.isoformat() if stats.last_updated else None
    }), 200


@dashboard_bp.route('/analytics', methods=['GET'])
@admin_required
def get_dashboard_analytics():
    """获取缓存中的扩展统计 (热销、低库存、分类统计、最近活动)"""
    try:
        stats, cached = dashboard_service.get_or_refresh_stats()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"获取仪表盘分析数据失败: {e}")
        return jsonify({'success': False, 'error': f'Error fetching analytics: {e}'}), 500

    return jsonify({'success': True, 'data': stats.to_dict(), 'cached': cached}), 200


@dashboard_bp.route('/cache/refresh', methods=['POST'])
@admin_required
def refresh_dashboard_cache():
    """手动刷新仪表盘缓存"""
    try:
        stats = dashboard_service.refresh_dashboard_stats()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"刷新仪表盘缓存失败: {e}")
        return jsonify({'success': False, 'error': f'Error refreshing cache: {e}'}), 500

    return jsonify({
        'success': True,
        'message': 'Dashboard cache refreshed successfully',
        'lastUpdated': stats.last_updated.isoformat()
    }), 200


@dashboard_bp.route('/cache/clear', methods=['DELETE'])
@admin_required
def clear_dashboard_cache():
    """清空仪表盘缓存，下次请求时重新计算"""
    try:
        DashboardStats.clear_cache()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"清空仪表盘缓存失败: {e}")
        return jsonify({'success': False, 'error': f'Error clearing cache: {e}'}), 500

    current_app.logger.info("仪表盘缓存已清空")
    return jsonify({
        'success': True,
        'message': 'Dashboard cache cleared successfully'
    }), 200


@dashboard_bp.route('/cache/status', methods=['GET'])
@admin_required
def get_cache_status():
    """获取缓存状态和元数据"""
    status = DashboardStats.cache_status()
    if status is None:
        return jsonify({
            'success': True,
            'cached': False,
            'message': 'No cache exists yet'
        }), 200

    return jsonify({
        'success': True,
        'cached': True,
        'cacheStatus': status
    }), 200
