"""
分类树工具函数。

将扁平的分类列表 (dict，包含 _id 与 parent 字段) 按 parent 分组构建成森林，
服务端 (hierarchy=true 的列表接口) 与客户端 (CategoryStore) 共用。

递归过程中维护祖先 ID 集合，parent 链成环时抛出 CategoryCycleError 而不是无限递归。
"""


class CategoryCycleError(ValueError):
    """分类 parent 引用成环"""

    def __init__(self, category_id):
        self.category_id = category_id
        super().__init__(f"Category {category_id} is part of a parent cycle")


def _normalize_id(value, id_key='_id'):
    # parent 可能是 ID，也可能是已填充的分类对象
    if isinstance(value, dict):
        value = value.get(id_key, value.get('id'))
    if value is None or value == '':
        return None
    return str(value)


def build_category_tree(categories, parent_id=None, id_key='_id', parent_key='parent'):
    """
    构建分类树

    参数:
        categories (list[dict]): 扁平分类列表
        parent_id: 起始父节点 ID；为 None 时从根节点开始
            (没有 parent，或 parent 不在列表中的分类都视为根节点)

    返回:
        list[dict]: 森林，每个节点是原分类的副本并附加 children 列表
    """
    categories = list(categories)
    known_ids = {_normalize_id(cat.get(id_key), id_key) for cat in categories}

    def parent_of(cat):
        return _normalize_id(cat.get(parent_key), id_key)

    def is_root(cat):
        parent = parent_of(cat)
        return parent is None or parent not in known_ids

    def build(current_parent, ancestors):
        nodes = []
        for cat in categories:
            if current_parent is None:
                matched = is_root(cat)
            else:
                matched = parent_of(cat) == current_parent
            if not matched:
                continue

            cat_id = _normalize_id(cat.get(id_key), id_key)
            if cat_id in ancestors:
                raise CategoryCycleError(cat_id)

            node = dict(cat)
            node['children'] = build(cat_id, ancestors | {cat_id})
            nodes.append(node)
        return nodes

    start = _normalize_id(parent_id, id_key)
    forest = build(start, frozenset([start]) if start is not None else frozenset())

    if start is None:
        # 从根节点出发仍未覆盖的分类只可能位于环上
        reached = {_normalize_id(node.get(id_key), id_key) for node in flatten_category_tree(forest)}
        for cat in categories:
            cat_id = _normalize_id(cat.get(id_key), id_key)
            if cat_id not in reached:
                raise CategoryCycleError(cat_id)

    return forest


def flatten_category_tree(tree):
    """先序遍历分类树，返回去掉 children 的扁平列表"""
    flat = []
    for node in tree:
        item = {k: v for k, v in node.items() if k != 'children'}
        flat.append(item)
        flat.extend(flatten_category_tree(node.get('children') or []))
    return flat


def count_tree_nodes(tree):
    return sum(1 + count_tree_nodes(node.get('children') or []) for node in tree)


def collect_descendant_ids(categories, category_id, id_key='_id', parent_key='parent'):
    """返回 category_id 子树中所有后代的 ID 集合 (字符串，不含自身)"""
    root = _normalize_id(category_id, id_key)
    descendants = set()
    frontier = [root]
    while frontier:
        current = frontier.pop()
        for cat in categories:
            cat_id = _normalize_id(cat.get(id_key), id_key)
            if _normalize_id(cat.get(parent_key), id_key) == current and cat_id not in descendants and cat_id != root:
                descendants.add(cat_id)
                frontier.append(cat_id)
    return descendants
