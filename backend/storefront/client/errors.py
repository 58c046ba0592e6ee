"""
分类管理客户端的错误类型。

每种错误都只归结为一条展示给用户的文本 (display_message)，
CategoryStore 的公开方法会捕获它们并写入 state.error，不会继续向外抛出，也不会重试。
"""


class CategoryClientError(Exception):
    """客户端错误基类"""

    default_message = 'Something went wrong. Please try again.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)

    @property
    def display_message(self):
        return str(self)


class AuthMissing(CategoryClientError):
    """没有可用的登录令牌，请求未发送"""

    default_message = 'Authentication required. Please sign in again.'


class NetworkFailure(CategoryClientError):
    """连接失败、超时等传输层错误"""

    def __init__(self, detail):
        self.detail = str(detail)
        super().__init__(f'Network error: {self.detail}')


class ServerError(CategoryClientError):
    """服务端返回非 2xx 状态码"""

    def __init__(self, status, message=None):
        self.status = status
        super().__init__(message or f'Request failed with status {status}')


class MalformedResponse(CategoryClientError):
    """响应不是 JSON 或无法解析"""

    default_message = 'Unexpected response from server. Please try again.'
