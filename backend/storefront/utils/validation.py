"""
请求校验中间件。

validate_json(Model) 装饰器使用 pydantic 模型解析 JSON 请求体，
校验通过后以关键字参数 payload 传给视图函数，失败时直接返回 400。
"""
from functools import wraps

from flask import jsonify, request
from pydantic import ValidationError


def format_validation_errors(error):
    """将 pydantic 的错误列表转换为可读字符串"""
    messages = []
    for item in error.errors():
        location = '.'.join(str(part) for part in item.get('loc', ()))
        message = item.get('msg', 'Invalid value')
        # "Value error, xxx" -> "xxx"
        if message.startswith('Value error, '):
            message = message[len('Value error, '):]
        messages.append(f"{location}: {message}" if location else message)
    return messages


def validate_json(model):
    """装饰器：校验 JSON 请求体"""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                return jsonify({
                    'success': False,
                    'message': 'Request body must be a JSON object'
                }), 400

            try:
                payload = model.model_validate(data)
            except ValidationError as e:
                return jsonify({
                    'success': False,
                    'message': 'Validation error',
                    'errors': format_validation_errors(e)
                }), 400

            return fn(*args, payload=payload, **kwargs)
        return wrapper
    return decorator
