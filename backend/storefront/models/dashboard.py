# backend/storefront/models/dashboard.py
"""
定义仪表盘统计缓存模型 (DashboardStats)。

整张表最多只有一行 "活动" 记录：所有写入都是对第一行的 upsert，并发写入时以最后写入者为准。
统计数据本身由 services.dashboard_service 计算，本模型只负责存储与按 TTL 判断新鲜度：

    Empty --计算--> Fresh --(now - last_updated > cache_expiry)--> Stale --计算--> Fresh

Stale 状态的记录仍可通过 current() 读取，只是 get_dashboard_stats() 不再返回它。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from storefront import db
from datetime import datetime, timedelta
from flask import current_app

DEFAULT_CACHE_EXPIRY_MINUTES = 5
MAX_RECENT_ACTIVITIES = 50

# 对外字段名 -> 列名
STATS_FIELDS = {
    'overview': 'overview',
    'recentOrders': 'recent_orders',
    'topRatedProducts': 'top_rated_products',
    'topSellingProducts': 'top_selling_products',
    'lowStockItems': 'low_stock_items',
    'categoryStats': 'category_stats',
    'recentActivities': 'recent_activities',
}

ACTIVITY_TYPES = (
    'product_added', 'product_updated', 'product_deleted', 'product_restored',
    'review_added', 'review_deleted',
    'category_added', 'category_updated', 'category_deleted',
)


class DashboardStats(db.Model):
    __tablename__ = 'dashboard_stats'

    id = db.Column(db.Integer, primary_key=True)
    overview = db.Column(db.JSON, nullable=False, default=dict)
    recent_orders = db.Column(db.JSON, nullable=False, default=list)
    top_rated_products = db.Column(db.JSON, nullable=False, default=list)
    top_selling_products = db.Column(db.JSON, nullable=False, default=list)
    low_stock_items = db.Column(db.JSON, nullable=False, default=list)
    category_stats = db.Column(db.JSON, nullable=False, default=list)
    recent_activities = db.Column(db.JSON, nullable=False, default=list)
    # 为空表示从未计算过统计 (例如只写入过活动记录)
    last_updated = db.Column(db.DateTime, nullable=True, index=True)
    cache_expiry = db.Column(db.Integer, nullable=False, default=DEFAULT_CACHE_EXPIRY_MINUTES)  # 分钟
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def current(cls):
        """返回唯一的缓存记录 (可能已过期)，不存在时返回 None"""
        return cls.query.order_by(cls.id.asc()).first()

    @classmethod
    def _get_or_create(cls):
        stats = cls.current()
        if stats is None:
            stats = cls(
                cache_expiry=current_app.config.get('DASHBOARD_CACHE_EXPIRY_MINUTES',
                                                    DEFAULT_CACHE_EXPIRY_MINUTES),
                overview={},
                recent_orders=[],
                top_rated_products=[],
                top_selling_products=[],
                low_stock_items=[],
                category_stats=[],
                recent_activities=[],
            )
            db.session.add(stats)
        return stats

    def age(self, now=None):
        if self.last_updated is None:
            return None
        return (now or datetime.utcnow()) - self.last_updated

    def is_fresh(self, now=None):
        age = self.age(now)
        return age is not None and age <= timedelta(minutes=self.cache_expiry)

    @classmethod
    def get_dashboard_stats(cls, now=None):
        """
        读取缓存的统计数据

        返回:
            DashboardStats | None: 记录存在且未过期时返回记录，否则返回 None 表示需要重新计算
        """
        stats = cls.current()
        if stats is None or not stats.is_fresh(now):
            return None
        return stats

    @classmethod
    def update_dashboard_stats(cls, stats_data, now=None):
        """
        upsert 统计数据并将 last_updated 设为当前时间

        只写入 stats_data 中出现的字段，其余字段保持原值。
        """
        stats = cls._get_or_create()
        for key, column in STATS_FIELDS.items():
            if stats_data.get(key) is not None:
                setattr(stats, column, stats_data[key])
        stats.last_updated = now or datetime.utcnow()
        db.session.commit()
        return stats

    @classmethod
    def add_activity(cls, activity_type, name=None, target_id=None, performed_by=None, details=None, now=None):
        """在最近活动列表头部插入一条记录，只保留最近 MAX_RECENT_ACTIVITIES 条"""
        if activity_type not in ACTIVITY_TYPES:
            raise ValueError(f"Unknown activity type: {activity_type}")

        activity = {
            'type': activity_type,
            'targetId': target_id,
            'name': name,
            'performedBy': performed_by,
            'timestamp': (now or datetime.utcnow()).isoformat(),
            'details': details or {},
        }
        stats = cls._get_or_create()
        # JSON 列需要整体赋值才能被检测到变更
        stats.recent_activities = [activity] + list(stats.recent_activities or [])[:MAX_RECENT_ACTIVITIES - 1]
        db.session.commit()
        return activity

    @classmethod
    def clear_cache(cls):
        """删除缓存记录，回到 Empty 状态"""
        deleted = cls.query.delete()
        db.session.commit()
        return deleted

    @classmethod
    def cache_status(cls, now=None):
        """返回缓存元数据；从未计算过时返回 None"""
        stats = cls.current()
        if stats is None or stats.last_updated is None:
            return None

        cache_age = int(stats.age(now).total_seconds())
        expiry_seconds = stats.cache_expiry * 60
        is_expired = cache_age > expiry_seconds
        return {
            'lastUpdated': stats.last_updated.isoformat(),
            'cacheAgeSeconds': cache_age,
            'cacheExpirySeconds': expiry_seconds,
            'isExpired': is_expired,
            'timeUntilExpiry': 0 if is_expired else expiry_seconds - cache_age
        }

    def to_dict(self):
        data = {key: getattr(self, column) for key, column in STATS_FIELDS.items()}
        data['lastUpdated'] = self.last_updated.isoformat() if self.last_updated else None
        data['cacheExpiry'] = self.cache_expiry
        return data

    def __repr__(self):
        return f'<DashboardStats updated={self.last_updated}>'
