"""
模型包初始化文件。

导入所有模型类，使其可以通过 storefront.models.ModelName 的方式被访问，
同时保证 Flask-Migrate 能看到全部表。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from .user import User
from .category import Category
from .product import Product
from .order import Order
from .order_item import OrderItem
from .dashboard import DashboardStats
from .password_reset import PasswordReset

__all__ = [
    'User',
    'Category',
    'Product',
    'Order',
    'OrderItem',
    'DashboardStats',
    'PasswordReset',
]
