# backend/storefront/models/order.py
"""
定义订单模型 (Order)。
订单可以属于注册用户，也可以是游客订单 (使用 guest_name / guest_email)。
订单明细见 order_item.py。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from storefront import db
from datetime import datetime

ORDER_STATUSES = ('pending', 'processing', 'shipped', 'completed', 'cancelled')


class Order(db.Model):
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    total_price = db.Column(db.Float, nullable=False, default=0.0)
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)
    is_guest_order = db.Column(db.Boolean, default=False)
    guest_name = db.Column(db.String(100), nullable=True)
    guest_email = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    user = db.relationship('User', backref=db.backref('orders', lazy='dynamic'))
    items = db.relationship('OrderItem', backref='order', cascade='all, delete-orphan')

    def recalculate_total(self):
        """根据订单明细重新计算总价"""
        self.total_price = round(sum(item.line_total for item in self.items), 2)
        return self.total_price

    def customer_summary(self):
        """注册用户返回用户信息，游客订单返回游客信息"""
        if self.user is not None:
            return {'id': self.user.id, 'username': self.user.username, 'email': self.user.email}
        if self.is_guest_order:
            return {'id': None, 'username': self.guest_name or 'Guest', 'email': self.guest_email or 'N/A'}
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'customer': self.customer_summary(),
            'total_price': self.total_price,
            'status': self.status,
            'is_guest_order': self.is_guest_order,
            'items': [item.to_dict() for item in self.items],
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    def __repr__(self):
        return f'<Order {self.id} {self.status}>'
