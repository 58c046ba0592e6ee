"""
错误处理模块

提供全站统一的 JSON 错误响应，包括：
- 针对后台 API 路径给出更具体的 404 提示
- 错误日志记录和统计 (按状态码、端点、客户端 IP)
- 管理员错误监控接口使用的统计快照
"""

from flask import jsonify, request, current_app
import re
import time
import threading
import traceback
from collections import Counter, defaultdict, deque
from datetime import datetime

# 定义URL模式及错误提示
URL_PATTERNS = [
    (re.compile(r'/api/admin/categories/([^/]+)'), "Category not found"),
    (re.compile(r'/api/dashboard/'), "Dashboard resource not found"),
    (re.compile(r'/api/auth/'), "Authentication endpoint not found"),
    (re.compile(r'/api/admin/'), "Admin resource not found or access denied"),
]

MAX_RECENT_ERRORS = 100

# 错误计数和统计
def _empty_stats():
    return {
        'last_reset': time.time(),
        'total_count': 0,
        'by_code': defaultdict(int),
        'by_endpoint': defaultdict(int),
        'by_pattern': defaultdict(int),
        'recent_errors': deque(maxlen=MAX_RECENT_ERRORS),
        'ip_count': Counter(),
    }


_error_lock = threading.Lock()
_error_stats = _empty_stats()


class ErrorHandler:
    """错误处理器"""

    @staticmethod
    def register_handlers(app):
        """注册所有错误处理器"""

        @app.errorhandler(404)
        def handle_not_found(e):
            path = request.path
            error_msg = "The requested resource does not exist"
            matched_pattern = None

            for pattern, msg in URL_PATTERNS:
                if pattern.search(path):
                    error_msg = msg
                    matched_pattern = pattern.pattern
                    break

            ErrorHandler._record_error(404, path, request.method, request.remote_addr,
                                       error_msg, matched_pattern)

            return jsonify({
                'success': False,
                'error': 'not_found',
                'message': error_msg,
                'status': 404
            }), 404

        @app.errorhandler(500)
        def handle_server_error(e):
            path = request.path
            error_detail = str(e)

            current_app.logger.error(f"服务器错误: {path} - {error_detail}\n{traceback.format_exc()}")
            ErrorHandler._record_error(500, path, request.method, request.remote_addr, error_detail)

            return jsonify({
                'success': False,
                'error': 'server_error',
                'message': 'Server error, please try again later',
                'status': 500
            }), 500

        for code in [400, 401, 403, 405, 429]:
            app.register_error_handler(code, ErrorHandler._create_error_handler(code))

    @staticmethod
    def _create_error_handler(status_code):
        """创建特定状态码的错误处理器"""
        error_msgs = {
            400: "Bad request",
            401: "Unauthorized",
            403: "Forbidden",
            405: "Method not allowed",
            429: "Too many requests"
        }

        def handler(e):
            error_msg = error_msgs.get(status_code, "Request failed")
            ErrorHandler._record_error(status_code, request.path, request.method,
                                       request.remote_addr, error_msg)
            return jsonify({
                'success': False,
                'error': f'error_{status_code}',
                'message': error_msg,
                'status': status_code
            }), status_code

        return handler

    @staticmethod
    def _record_error(status_code, path, method, client_ip, error_msg, pattern=None):
        """记录错误统计信息"""
        with _error_lock:
            _error_stats['total_count'] += 1
            _error_stats['by_code'][status_code] += 1
            _error_stats['by_endpoint'][ErrorHandler._simplify_path(path)] += 1
            if pattern:
                _error_stats['by_pattern'][pattern] += 1
            _error_stats['ip_count'][client_ip] += 1

            _error_stats['recent_errors'].append({
                'timestamp': datetime.now().isoformat(),
                'status_code': status_code,
                'path': path,
                'method': method,
                'client_ip': client_ip,
                'message': error_msg
            })

    @staticmethod
    def _simplify_path(path):
        """简化路径，替换ID为占位符"""
        path = re.sub(r'/\d+(?=/|$)', '/{id}', path)
        path = re.sub(r'/reset-password/[^/]+', '/reset-password/{token}', path)
        return path

    @staticmethod
    def get_error_stats():
        """获取错误统计信息"""
        with _error_lock:
            return {
                'total_count': _error_stats['total_count'],
                'by_code': dict(_error_stats['by_code']),
                'by_endpoint': dict(_error_stats['by_endpoint']),
                'by_pattern': dict(_error_stats['by_pattern']),
                'recent_errors': list(_error_stats['recent_errors'])[-20:],
                'top_ips': dict(_error_stats['ip_count'].most_common(10)),
                'last_reset': _error_stats['last_reset']
            }

    @staticmethod
    def reset_stats():
        """重置错误统计"""
        with _error_lock:
            _error_stats.update(_empty_stats())

        return {"success": True, "message": "Error statistics reset"}
