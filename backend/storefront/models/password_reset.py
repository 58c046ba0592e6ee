# backend/storefront/models/password_reset.py
"""
定义密码重置令牌模型 (PasswordReset)。

每个邮箱最多一条有效令牌 (email 唯一，重新申请会覆盖旧令牌)。
数据库只保存令牌的 SHA-256 摘要；兑换前必须先检查是否过期。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from storefront import db
from datetime import datetime, timedelta
import hashlib
import secrets

DEFAULT_EXPIRES_IN = 30 * 60  # 秒


class PasswordReset(db.Model):
    __tablename__ = 'password_resets'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(100), unique=True, nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    reset_token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User')

    @staticmethod
    def hash_token(raw_token):
        return hashlib.sha256(raw_token.encode('utf-8')).hexdigest()

    @classmethod
    def issue(cls, user, expires_in=DEFAULT_EXPIRES_IN, now=None):
        """
        为用户签发新的重置令牌，覆盖该邮箱已有的令牌

        返回:
            str: 原始令牌 (只用于拼接重置链接，不落库)
        """
        now = now or datetime.utcnow()
        raw_token = secrets.token_hex(32)

        record = cls.query.filter_by(email=user.email).first()
        if record is None:
            record = cls(email=user.email)
            db.session.add(record)
        record.user_id = user.id
        record.reset_token = cls.hash_token(raw_token)
        record.expires_at = now + timedelta(seconds=expires_in)
        record.created_at = now
        db.session.commit()
        return raw_token

    def is_expired(self, now=None):
        return self.expires_at <= (now or datetime.utcnow())

    @classmethod
    def redeem(cls, raw_token, now=None):
        """
        兑换令牌

        令牌有效时返回对应的 user_id，并把删除操作加入当前会话 (由调用方与密码修改一并提交)；
        令牌不存在或已过期时返回 None，过期记录会被立即删除。
        """
        if not raw_token:
            return None

        record = cls.query.filter_by(reset_token=cls.hash_token(raw_token)).first()
        if record is None:
            return None

        if record.is_expired(now):
            db.session.delete(record)
            db.session.commit()
            return None

        user_id = record.user_id
        db.session.delete(record)
        return user_id

    def __repr__(self):
        return f'<PasswordReset {self.email}>'
