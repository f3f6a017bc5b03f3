from typing import Tuple
from .domain import Category, Product

# Рекурсивный обход дерева категорий


def flatten_categories(cats: Tuple[Category, ...], root: str) -> Tuple[Category, ...]:
    """
    Все категории поддерева, включая сам root.
    Неизвестный root даёт пустой кортеж.

      bicycles -> (mountain, city, racing, hybrid)
      flatten_categories(cats, "bicycles") -> (bicycles, mountain, city, racing, hybrid)
    """
    root_cat = next((c for c in cats if c.id == root), None)
    if not root_cat:
        return ()

    children = tuple(filter(lambda c: c.parent_id == root, cats))
    descendants = tuple(
        cat for child in children for cat in flatten_categories(cats, child.id)
    )
    return (root_cat,) + descendants


def collect_section_products(
    cats: Tuple[Category, ...],
    prods: Tuple[Product, ...],
    root_id: str,
) -> Tuple[Product, ...]:
    """Товары раздела root_id и всех его подразделов, в порядке каталога"""
    cat_ids = {c.id for c in flatten_categories(cats, root_id)}
    return tuple(filter(lambda p: p.category_id in cat_ids, prods))


def has_cycle(cats: Tuple[Category, ...], start: str) -> bool:
    """Проверяет, возвращается ли цепочка parent_id к стартовой категории"""
    parents = {c.id: c.parent_id for c in cats}

    def walk(current, seen):
        parent = parents.get(current)
        if parent is None:
            return False
        if parent in seen:
            return True
        return walk(parent, seen | {parent})

    return walk(start, frozenset({start}))
