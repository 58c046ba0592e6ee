"""
初始化数据库基础数据：管理员账号与基础商品分类。

通过 `flask --app run seed-db` 调用 (命令在 create_app 中注册)，重复执行不会重复插入。
"""
from flask import current_app

from storefront import db
from storefront.models import Category, User
from storefront.utils.slug_generator import generate_unique_slug

DEFAULT_CATEGORIES = [
    {"name": "Electronics", "description": "Phones, laptops and accessories"},
    {"name": "Phones", "description": "Smartphones and feature phones", "parent": "Electronics"},
    {"name": "Laptops", "description": "Notebooks and ultrabooks", "parent": "Electronics"},
    {"name": "Home & Kitchen", "description": "Appliances, cookware and decor"},
    {"name": "Fashion", "description": "Clothing, shoes and bags"},
    {"name": "Books", "description": "Printed books and e-books"},
]


def init_admin(email, password):
    """创建管理员账号，已存在时返回现有账号"""
    user = User.query.filter_by(email=email.lower()).first()
    if user is not None:
        return user

    user = User(email=email.lower(), username=email.split('@')[0], is_admin=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"管理员账号已创建: {user.email}")
    return user


def init_categories(created_by=None):
    """初始化分类数据，返回新增数量"""
    if Category.query.first() is not None:
        return 0

    by_name = {}
    # 父分类排在子分类之前
    for category_data in DEFAULT_CATEGORIES:
        parent = by_name.get(category_data.get("parent"))
        category = Category(
            name=category_data["name"],
            slug=generate_unique_slug(category_data["name"], Category),
            description=category_data["description"],
            parent=parent,
            created_by=created_by,
            updated_by=created_by,
        )
        db.session.add(category)
        by_name[category.name] = category

    db.session.commit()
    current_app.logger.info(f"分类数据初始化完成，共添加 {len(by_name)} 个分类")
    return len(by_name)
