"""
仪表盘统计服务

负责计算仪表盘所需的聚合数据，并通过 DashboardStats 模型实现读穿透缓存：
1. 缓存新鲜时直接返回缓存记录
2. 缓存不存在、已过期或强制刷新时重新计算并 upsert
"""

import logging
from datetime import datetime

from sqlalchemy import case, func

from storefront import db
from storefront.models import DashboardStats, Order, OrderItem, Product, User
from storefront.models.product import LOW_STOCK_THRESHOLD

logger = logging.getLogger(__name__)

RECENT_ORDERS_LIMIT = 5
TOP_PRODUCTS_LIMIT = 5
LOW_STOCK_ITEMS_LIMIT = 20


def _alert_level(stock):
    if stock <= 2:
        return 'critical'
    if stock <= 5:
        return 'warning'
    return 'low'


def _iso(value):
    return value.isoformat() if isinstance(value, datetime) else value


def compute_overview():
    total_revenue = db.session.query(func.coalesce(func.sum(Order.total_price), 0.0)) \
        .filter(Order.status == 'completed').scalar()
    return {
        'totalProducts': Product.query.count(),
        'activeProducts': Product.query.filter(Product.status == 'active').count(),
        'totalUsers': User.query.count(),
        'totalOrders': Order.query.count(),
        'totalRevenue': round(float(total_revenue or 0), 2),
        'lowStockProducts': Product.query.filter(Product.stock < LOW_STOCK_THRESHOLD).count(),
    }


def compute_recent_orders(limit=RECENT_ORDERS_LIMIT):
    orders = Order.query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()
    return [{
        '_id': order.id,
        'customer': order.customer_summary(),
        'totalPrice': order.total_price,
        'status': order.status,
        'createdAt': _iso(order.created_at),
        'items': [item.to_dict() for item in order.items],
    } for order in orders]


def compute_top_rated_products(limit=TOP_PRODUCTS_LIMIT):
    products = Product.query.filter(Product.status == 'active') \
        .order_by(Product.rating.desc(), Product.num_reviews.desc()) \
        .limit(limit).all()
    return [{
        '_id': p.id,
        'name': p.name,
        'category': p.category,
        'rating': p.rating,
        'numReviews': p.num_reviews,
        'price': p.price,
        'stock': p.stock,
        'featured': p.featured,
    } for p in products]


def compute_top_selling_products(limit=TOP_PRODUCTS_LIMIT):
    total_sold = func.sum(OrderItem.quantity).label('total_sold')
    total_revenue = func.sum(OrderItem.price * OrderItem.quantity).label('total_revenue')
    order_count = func.count(func.distinct(OrderItem.order_id)).label('order_count')
    last_order = func.max(Order.created_at).label('last_order_date')

    rows = db.session.query(Product, total_sold, total_revenue, order_count, last_order) \
        .join(OrderItem, OrderItem.product_id == Product.id) \
        .join(Order, Order.id == OrderItem.order_id) \
        .filter(Order.status != 'cancelled') \
        .group_by(Product.id) \
        .order_by(total_sold.desc()) \
        .limit(limit).all()

    return [{
        '_id': product.id,
        'name': product.name,
        'category': product.category,
        'price': product.price,
        'stock': product.stock,
        'totalSold': int(sold or 0),
        'totalRevenue': round(float(revenue or 0), 2),
        'averageOrderValue': round(float(revenue or 0) / orders, 2) if orders else 0,
        'lastOrderDate': _iso(last_date),
    } for product, sold, revenue, orders, last_date in rows]


def compute_low_stock_items(limit=LOW_STOCK_ITEMS_LIMIT):
    products = Product.query.filter(Product.stock < LOW_STOCK_THRESHOLD, Product.status != 'deleted') \
        .order_by(Product.stock.asc()).limit(limit).all()
    return [{
        '_id': p.id,
        'name': p.name,
        'category': p.category,
        'stock': p.stock,
        'price': p.price,
        'status': p.status,
        'reorderLevel': LOW_STOCK_THRESHOLD,
        'alertLevel': _alert_level(p.stock),
    } for p in products]


def compute_category_stats():
    active = func.sum(case((Product.status == 'active', 1), else_=0))
    rows = db.session.query(
        Product.category,
        func.count(Product.id),
        active,
        func.avg(Product.price),
    ).filter(Product.status != 'deleted').group_by(Product.category).all()

    revenue_rows = db.session.query(Product.category, func.sum(OrderItem.price * OrderItem.quantity)) \
        .join(OrderItem, OrderItem.product_id == Product.id) \
        .join(Order, Order.id == OrderItem.order_id) \
        .filter(Order.status == 'completed') \
        .group_by(Product.category).all()
    revenue_by_category = {category: float(total or 0) for category, total in revenue_rows}

    return [{
        'category': category,
        'totalProducts': int(total),
        'activeProducts': int(active_count or 0),
        'averagePrice': round(float(avg_price or 0), 2),
        'totalRevenue': round(revenue_by_category.get(category, 0.0), 2),
    } for category, total, active_count, avg_price in rows]


def compute_dashboard_stats():
    """计算完整的仪表盘统计数据"""
    return {
        'overview': compute_overview(),
        'recentOrders': compute_recent_orders(),
        'topRatedProducts': compute_top_rated_products(),
        'topSellingProducts': compute_top_selling_products(),
        'lowStockItems': compute_low_stock_items(),
        'categoryStats': compute_category_stats(),
    }


def refresh_dashboard_stats(now=None):
    """重新计算并写入缓存"""
    stats_data = compute_dashboard_stats()
    record = DashboardStats.update_dashboard_stats(stats_data, now=now)
    logger.info("仪表盘统计已刷新")
    return record


def get_or_refresh_stats(force=False, now=None):
    """
    读穿透缓存

    返回:
        tuple[DashboardStats, bool]: (缓存记录, 是否命中缓存)
    """
    if not force:
        cached = DashboardStats.get_dashboard_stats(now=now)
        if cached is not None:
            return cached, True

    return refresh_dashboard_stats(now=now), False
