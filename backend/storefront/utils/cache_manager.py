"""
缓存管理模块

提供基于 Flask-Caching 的数据缓存 (默认 Redis，测试环境使用 SimpleCache)：
- 数据缓存：缓存后台分类列表等 API 查询结果
- 分组失效：写操作后按分组批量失效相关缓存

分组通过版本号实现：分组内的缓存键都带有当前版本号，失效时只需递增版本号，
旧键随 TTL 自然过期，因此不依赖 Redis 的模式匹配删除。
"""

from flask_caching import Cache
from flask import current_app, Flask
from functools import wraps
import hashlib
import json
import pickle
import threading

# 创建Cache实例，延迟初始化
cache = Cache()

# 缓存键前缀
KEY_PREFIX = {
    'DATA': 'data:',
    'CATEGORY': 'category:',
    'GROUP_VERSION': 'group:version:',
}

# 缓存过期时间(秒)
TTL = {
    'DATA_SHORT': 60,
    'DATA_MEDIUM': 300,
    'DATA_LONG': 3600,
}


def init_app(app: Flask):
    """初始化缓存系统"""
    cache_type = app.config.get('CACHE_TYPE', 'RedisCache')
    cache_config = {
        'CACHE_TYPE': cache_type,
        'CACHE_DEFAULT_TIMEOUT': TTL['DATA_MEDIUM'],
        'CACHE_KEY_PREFIX': 'storefront:',
    }
    if cache_type == 'RedisCache':
        cache_config['CACHE_REDIS_URL'] = app.config.get('REDIS_URL', 'redis://localhost:6379/0')
        cache_config['CACHE_OPTIONS'] = {
            'socket_timeout': 5,
            'socket_connect_timeout': 5,
            'retry_on_timeout': True,
            'health_check_interval': 30
        }

    cache.init_app(app, config=cache_config)
    app.logger.info(f"缓存系统已初始化，类型: {cache_type}")


class DataCache:
    """数据缓存管理

    提供函数结果缓存和按分组失效。
    """

    stats = {
        'hits': 0,
        'misses': 0,
        'errors': 0,
        'group_invalidations': 0
    }
    _stats_lock = threading.Lock()

    @staticmethod
    def _count(name):
        with DataCache._stats_lock:
            DataCache.stats[name] += 1

    @staticmethod
    def make_key(prefix, *args):
        """根据前缀和参数生成缓存键"""
        if not args:
            return f"{prefix}"

        serialized_args = []
        for arg in args:
            if isinstance(arg, (str, int, float, bool, type(None))):
                serialized_args.append(str(arg))
            else:
                try:
                    serialized_args.append(json.dumps(arg, sort_keys=True))
                except (TypeError, ValueError):
                    serialized_args.append(hashlib.md5(pickle.dumps(arg)).hexdigest())

        return ':'.join([prefix] + serialized_args)

    @staticmethod
    def group_version(group_name):
        """读取分组当前版本号 (缓存不可用时视为 0)"""
        try:
            return cache.get(f"{KEY_PREFIX['GROUP_VERSION']}{group_name}") or 0
        except Exception as e:
            current_app.logger.warning(f"读取缓存分组版本失败 {group_name}: {e}")
            return 0

    @staticmethod
    def cached(prefix, ttl=TTL['DATA_MEDIUM'], group=None):
        """缓存装饰器

        Args:
            prefix: 缓存键前缀
            ttl: 缓存过期时间(秒)
            group: 所属分组名称，可通过 invalidate_group 批量失效
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                key_args = list(args) + [kwargs[k] for k in sorted(kwargs)]
                if group:
                    key_args.insert(0, f"v{DataCache.group_version(group)}")
                cache_key = DataCache.make_key(prefix, *key_args)

                try:
                    cached_result = cache.get(cache_key)
                except Exception as e:
                    DataCache._count('errors')
                    current_app.logger.warning(f"缓存读取失败 {cache_key}: {e}")
                    cached_result = None

                if cached_result is not None:
                    DataCache._count('hits')
                    return pickle.loads(cached_result)

                DataCache._count('misses')
                result = func(*args, **kwargs)

                try:
                    cache.set(cache_key, pickle.dumps(result), timeout=ttl)
                except Exception as e:
                    DataCache._count('errors')
                    current_app.logger.error(f"缓存设置失败 {cache_key}: {e}")

                return result
            return wrapper
        return decorator

    @staticmethod
    def invalidate_group(group_name):
        """通过递增版本号使分组内所有缓存失效"""
        version_key = f"{KEY_PREFIX['GROUP_VERSION']}{group_name}"
        try:
            current = cache.get(version_key) or 0
            cache.set(version_key, current + 1, timeout=0)
            DataCache._count('group_invalidations')
            return True
        except Exception as e:
            current_app.logger.error(f"缓存分组失效失败 {group_name}: {e}")
            return False

    @staticmethod
    def get_stats():
        """获取缓存统计信息"""
        with DataCache._stats_lock:
            snapshot = dict(DataCache.stats)
        total = snapshot['hits'] + snapshot['misses']
        hit_rate = snapshot['hits'] / total if total > 0 else 0
        return {
            **snapshot,
            'hit_rate': f"{hit_rate:.2%}",
        }
