"""
生成 slug 的工具函数。

为分类等模型生成友好的 URL 标识符，支持中文转拼音，并确保生成的 slug 在特定模型的表中唯一。
"""
import re
import time
import unicodedata
from sqlalchemy import inspect
from pypinyin import lazy_pinyin

SLUG_PATTERN = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')


def generate_slug(text):
    """
    将文本转换为 URL 友好的 slug 格式

    "Men's Shoes & Boots" -> "mens-shoes-boots"。对已经是 slug 的输入保持不变。

    参数:
        text (str): 要转换的文本

    返回:
        str: 格式化后的 slug
    """
    if not text:
        return ''

    # 如果是中文，先转为拼音
    if any('\u4e00' <= char <= '\u9fff' for char in text):
        text = '-'.join(lazy_pinyin(text))

    text = unicodedata.normalize('NFKD', text).encode('ascii', 'ignore').decode('ascii')
    text = text.lower().strip()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_-]+', '-', text)
    return text.strip('-')


def is_valid_slug(slug):
    return bool(slug) and SLUG_PATTERN.match(slug) is not None


def generate_unique_slug(text, model, exclude_id=None):
    """
    生成唯一的 slug，如果已存在则添加后缀

    参数:
        text (str): 要转换为 slug 的文本
        model (db.Model): 需要检查唯一性的 SQLAlchemy 模型
        exclude_id (int, optional): 更新时排除的 ID

    返回:
        str: 唯一的 slug
    """
    base_slug = generate_slug(text)
    slug = base_slug
    counter = 1

    pk_name = inspect(model).primary_key[0].name

    while True:
        query = model.query.filter(model.slug == slug)
        if exclude_id is not None:
            query = query.filter(getattr(model, pk_name) != exclude_id)

        if query.first() is None:
            break

        slug = f"{base_slug}-{counter}"
        counter += 1

        # 防止无限循环，超过一定次数后使用时间戳
        if counter > 100:
            slug = f"{base_slug}-{int(time.time())}"
            break

    return slug
