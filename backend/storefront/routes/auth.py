"""
此模块定义了与用户认证相关的 API 端点。
(在 storefront/__init__.py 中以 /api/auth 前缀注册)

主要功能包括:
- JWT API 登录，令牌中携带 is_admin 声明供后台接口鉴权。
- 申请密码重置 (限流)，生成一次性重置令牌并记录重置链接。
- 使用重置令牌设置新密码 (先检查过期)。

依赖模型: User, PasswordReset
使用 Flask 蓝图: auth_bp

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from datetime import datetime

from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import SQLAlchemyError

from storefront import db, limiter
from storefront.models import User, PasswordReset
from storefront.schemas import LoginPayload, ForgotPasswordPayload, ResetPasswordPayload
from storefront.utils.validation import validate_json

auth_bp = Blueprint('auth', __name__)

RESET_REQUESTED_MESSAGE = 'If an account exists for that email, a reset link has been sent'


@auth_bp.route('/login', methods=['POST'])
@validate_json(LoginPayload)
def login(payload):
    """API 登录，返回 JWT 令牌"""
    user = User.query.filter_by(email=payload.email.lower()).first()
    if user is None or not user.check_password(payload.password):
        return jsonify({'success': False, 'message': 'Invalid email or password'}), 401
    if not user.is_active:
        return jsonify({'success': False, 'message': 'Account is disabled'}), 403

    user.last_login = datetime.utcnow()
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning(f"更新最后登录时间失败: {e}")

    token = create_access_token(
        identity=str(user.id),
        additional_claims={'is_admin': bool(user.is_admin), 'email': user.email}
    )
    current_app.logger.info(f"用户登录成功: {user.email}")
    return jsonify({'success': True, 'token': token, 'user': user.to_dict()}), 200


@auth_bp.route('/forgot-password', methods=['POST'])
@limiter.limit("5 per minute")
@validate_json(ForgotPasswordPayload)
def forgot_password(payload):
    """申请密码重置，无论邮箱是否存在都返回相同提示"""
    user = User.query.filter_by(email=payload.email).first()
    if user is None:
        current_app.logger.info(f"密码重置申请的邮箱不存在: {payload.email}")
        return jsonify({'success': True, 'message': RESET_REQUESTED_MESSAGE}), 200

    try:
        raw_token = PasswordReset.issue(user, expires_in=current_app.config['PASSWORD_RESET_EXPIRES'])
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"生成密码重置令牌失败: {e}")
        return jsonify({'success': False, 'message': 'Server error'}), 500

    reset_url = f"{current_app.config['FRONTEND_URL'].rstrip('/')}/auth/reset-password/{raw_token}"
    # 邮件发送由外部服务负责，这里只记录链接
    current_app.logger.info(f"密码重置链接已生成: {user.email} -> {reset_url}")

    return jsonify({'success': True, 'message': RESET_REQUESTED_MESSAGE}), 200


@auth_bp.route('/reset-password/<token>', methods=['POST'])
@validate_json(ResetPasswordPayload)
def reset_password(token, payload):
    """使用重置令牌设置新密码"""
    user_id = PasswordReset.redeem(token)
    if user_id is None:
        return jsonify({'success': False, 'message': 'Invalid or expired reset token'}), 400

    user = db.session.get(User, user_id)
    if user is None:
        db.session.commit()
        return jsonify({'success': False, 'message': 'Invalid or expired reset token'}), 400

    user.set_password(payload.password)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"重置密码失败: {e}")
        return jsonify({'success': False, 'message': 'Could not reset password'}), 500

    current_app.logger.info(f"用户已重置密码: {user.email}")
    return jsonify({'success': True, 'message': 'Password reset successful'}), 200
