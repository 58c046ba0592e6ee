#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Storefront 后台服务启动脚本

使用方法：
1. 启动开发服务器：python run.py
2. 初始化数据：flask --app run seed-db
3. 使用gunicorn部署：gunicorn -w 4 -b 0.0.0.0:5000 "run:app"
"""

# backend/run.py
import os
import sys
import logging
import time

import redis
from storefront import create_app as flask_create_app
from storefront.config import API_HOST, API_PORT, API_DEBUG, REDIS_URL

# 创建logs目录
os.makedirs('logs', exist_ok=True)

# 配置日志记录
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

# 创建Flask应用实例 - 为gunicorn提供
app = flask_create_app()


# 测试Redis连接
def test_redis_connection():
    logger.info(f"尝试连接Redis: {REDIS_URL}")
    try:
        client = redis.from_url(REDIS_URL)
        test_key = f"redis_test_{time.time()}"
        client.set(test_key, "ok")
        value = client.get(test_key)
        client.delete(test_key)
    except redis.RedisError as e:
        logger.error(f"Redis连接测试失败: {e}")
        return False

    if value:
        logger.info("Redis连接测试成功")
        return True
    logger.error("Redis连接测试失败: 无法写入或读取测试键")
    return False


# 直接运行此脚本时启动Flask开发服务器
if __name__ == '__main__':
    if not test_redis_connection():
        logger.warning("Redis连接测试失败，缓存与限流将不可用，但将继续启动应用")

    logger.info(f"应用配置: HOST={API_HOST}, PORT={API_PORT}, DEBUG={API_DEBUG}")
    app.run(host=API_HOST, port=API_PORT, debug=API_DEBUG)
