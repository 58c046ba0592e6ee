# backend/storefront/models/order_item.py
"""
定义订单明细模型 (OrderItem)。
每条明细记录下单时的商品名称与单价快照，price 与 quantity 必填。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from storefront import db
from sqlalchemy import CheckConstraint


class OrderItem(db.Model):
    __tablename__ = 'order_items'
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_order_items_quantity_positive'),
        CheckConstraint('price >= 0', name='ck_order_items_price_non_negative'),
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    product = db.relationship('Product')

    @property
    def line_total(self):
        return (self.price or 0) * (self.quantity or 0)

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
            'line_total': self.line_total
        }

    def __repr__(self):
        return f'<OrderItem {self.name} x{self.quantity}>'
