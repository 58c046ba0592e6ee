from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import logging
import os

from .utils import cache_manager
from .utils.error_handler import ErrorHandler

from storefront.config import (
    SECRET_KEY, SQLALCHEMY_TRACK_MODIFICATIONS, SQLALCHEMY_ECHO,
    JWT_SECRET_KEY, JWT_TOKEN_LOCATION, JWT_HEADER_NAME, JWT_HEADER_TYPE,
    JWT_ACCESS_TOKEN_EXPIRES,
    get_database_uri,
    CORS_ORIGINS,
    REDIS_URL, CACHE_TYPE, RATELIMIT_STORAGE_URI,
    LOG_FILE,
    DASHBOARD_CACHE_EXPIRY_MINUTES, PASSWORD_RESET_EXPIRES, FRONTEND_URL,
    ADMIN_EMAIL, ADMIN_PASSWORD,
)

# 初始化扩展
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()

# 限流存储地址由 RATELIMIT_STORAGE_URI 配置决定
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["10000 per day", "3000 per hour"],
)

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def _configure_logging(app):
    """配置 app.logger：控制台 + 可选的文件输出"""
    app.logger.setLevel(logging.INFO)

    # 多次 create_app (例如测试) 时避免重复挂载处理器
    for handler in list(app.logger.handlers):
        if getattr(handler, '_storefront_handler', False):
            app.logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._storefront_handler = True
    app.logger.addHandler(console_handler)

    log_file_path = app.config.get('LOG_FILE')
    if log_file_path:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler._storefront_handler = True
        app.logger.addHandler(file_handler)

    # 客户端与服务层模块沿用同一格式
    logging.getLogger('storefront').setLevel(logging.INFO)


def create_app(config_object=None):
    """
    创建 Flask 应用。

    config_object 为可选的映射，会覆盖默认配置 (测试中用于切换到内存数据库、
    SimpleCache 和 memory:// 限流存储)。
    """
    app = Flask(__name__, instance_relative_config=False)
    app.url_map.strict_slashes = False

    app.config.from_mapping(
        SECRET_KEY=SECRET_KEY,
        SQLALCHEMY_DATABASE_URI=get_database_uri(),
        SQLALCHEMY_TRACK_MODIFICATIONS=SQLALCHEMY_TRACK_MODIFICATIONS,
        SQLALCHEMY_ECHO=SQLALCHEMY_ECHO,
        JWT_SECRET_KEY=JWT_SECRET_KEY,
        JWT_TOKEN_LOCATION=JWT_TOKEN_LOCATION,
        JWT_HEADER_NAME=JWT_HEADER_NAME,
        JWT_HEADER_TYPE=JWT_HEADER_TYPE,
        JWT_ACCESS_TOKEN_EXPIRES=JWT_ACCESS_TOKEN_EXPIRES,
        REDIS_URL=REDIS_URL,
        CACHE_TYPE=CACHE_TYPE,
        RATELIMIT_STORAGE_URI=RATELIMIT_STORAGE_URI,
        LOG_FILE=LOG_FILE,
        DASHBOARD_CACHE_EXPIRY_MINUTES=DASHBOARD_CACHE_EXPIRY_MINUTES,
        PASSWORD_RESET_EXPIRES=PASSWORD_RESET_EXPIRES,
        FRONTEND_URL=FRONTEND_URL,
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
    )
    if config_object:
        app.config.update(config_object)

    _configure_logging(app)

    # 初始化扩展
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    CORS(app,
         origins=CORS_ORIGINS,
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
         allow_headers=["Content-Type", "Authorization"],
         supports_credentials=True)
    limiter.init_app(app)

    cache_manager.init_app(app)

    ErrorHandler.register_handlers(app)
    app.logger.info("错误处理器已注册")

    # JWT 错误处理
    @jwt.invalid_token_loader
    def invalid_token_callback(error_string):
        return jsonify({
            'success': False,
            'error': 'Invalid access token',
            'message': str(error_string)
        }), 422

    @jwt.unauthorized_loader
    def unauthorized_callback(error_string):
        return jsonify({
            'success': False,
            'error': 'Access denied. No token provided.',
            'message': str(error_string)
        }), 401

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            'success': False,
            'error': 'Token expired',
            'message': 'Token expired'
        }), 401

    with app.app_context():
        # 确保所有模型注册到元数据 (Flask-Migrate 依赖)
        from storefront import models  # noqa: F401

        from storefront.routes.auth import auth_bp
        from storefront.routes.categories import categories_bp
        from storefront.routes.dashboard import dashboard_bp
        from storefront.routes.admin import admin_bp

        app.register_blueprint(auth_bp, url_prefix='/api/auth')
        app.register_blueprint(categories_bp, url_prefix='/api/admin/categories')
        app.register_blueprint(dashboard_bp, url_prefix='/api/dashboard')
        app.register_blueprint(admin_bp, url_prefix='/api/admin')

        for rule in app.url_map.iter_rules():
            app.logger.debug(f"{rule.endpoint}: {rule.rule}")

    @app.route('/api/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'message': 'Storefront API is running'
        }), 200

    @app.cli.command('seed-db')
    def seed_db():
        """创建数据表并写入管理员账号和基础分类"""
        from storefront.utils.init_db import init_admin, init_categories

        db.create_all()
        admin = None
        if app.config.get('ADMIN_EMAIL') and app.config.get('ADMIN_PASSWORD'):
            admin = init_admin(app.config['ADMIN_EMAIL'], app.config['ADMIN_PASSWORD'])
        added = init_categories(created_by=admin.id if admin else None)
        app.logger.info(f"seed-db 完成，新增分类 {added} 个")

    @app.before_request
    def log_request():
        app.logger.debug(f"{request.method} {request.path}")

    app.logger.info("Flask 应用创建完成")
    return app
