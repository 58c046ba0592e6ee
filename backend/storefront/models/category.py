# backend/storefront/models/category.py
"""
定义分类模型 (Category)。
用于组织商品目录，支持层级结构 (parent_id 自引用)。
slug 未显式提供时由名称生成；parent 引用不允许成环 (由路由层在更新时校验)。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from storefront import db
from datetime import datetime


class Category(db.Model):
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True, index=True)
    slug = db.Column(db.String(120), nullable=False, unique=True, index=True)
    description = db.Column(db.Text, nullable=True, default='')
    parent_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    updated_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    parent = db.relationship('Category', remote_side=[id], backref=db.backref('children', lazy='dynamic'))

    def to_dict(self):
        # 使用前端约定的字段名: _id / parent
        return {
            '_id': self.id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description or '',
            'parent': self.parent_id,
            'parent_name': self.parent.name if self.parent else None,
            'is_active': self.is_active,
            'created_by': self.created_by,
            'updated_by': self.updated_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    def __repr__(self):
        return f'<Category {self.name}>'
