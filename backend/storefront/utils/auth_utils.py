from functools import wraps
from flask import jsonify
from flask_jwt_extended import jwt_required, get_jwt


def admin_required(fn):
    """
    装饰器：确保只有管理员才能访问该端点。

    会先应用 jwt_required() 验证令牌，再检查 JWT 中是否存在 'is_admin': True 的声明。
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        claims = get_jwt()

        if claims.get('is_admin') is True:
            return fn(*args, **kwargs)
        return jsonify({
            'success': False,
            'message': 'Admin access required'
        }), 403

    # 手动应用 jwt_required 以确保在检查权限前用户已认证
    return jwt_required()(wrapper)
