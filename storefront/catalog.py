import json
import logging
from pathlib import Path
from typing import Tuple, Union
from .ftypes import Maybe
from .domain import Category, Product
from .recursion import collect_section_products, has_cycle

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "catalog.json"


class CatalogError(ValueError):
    """Каталог в файле не согласован (битая ссылка или цикл категорий)"""


# ============ Загрузка каталога ============


def load_catalog(
    path: Union[str, Path] = DEFAULT_CATALOG_PATH,
) -> Tuple[Tuple[Category, ...], Tuple[Product, ...]]:
    """Читает catalog.json и возвращает кортежи неизменяемых категорий и товаров"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    categories = tuple(map(lambda c: Category(**c), data.get("categories", [])))

    def _to_product(p):
        p2 = dict(p)
        p2["options"] = {
            name: tuple(choices) for name, choices in p2.get("options", {}).items()
        }
        return Product(**p2)

    products = tuple(map(_to_product, data.get("products", [])))
    validate_catalog(categories, products)
    logger.info(
        "Каталог загружен: %d категорий, %d товаров", len(categories), len(products)
    )
    return categories, products


def validate_catalog(
    categories: Tuple[Category, ...], products: Tuple[Product, ...]
) -> None:
    ids = {c.id for c in categories}
    if len(ids) != len(categories):
        raise CatalogError("Повторяющийся id категории")
    if len({p.id for p in products}) != len(products):
        raise CatalogError("Повторяющийся id товара")

    for c in categories:
        if c.parent_id is not None and c.parent_id not in ids:
            raise CatalogError(f"Категория '{c.id}' ссылается на '{c.parent_id}'")
        if has_cycle(categories, c.id):
            raise CatalogError(f"Цикл в дереве категорий через '{c.id}'")
    for p in products:
        if p.category_id not in ids:
            raise CatalogError(f"Товар '{p.id}' ссылается на '{p.category_id}'")
        if p.price < 0 or p.weight < 0:
            raise CatalogError(f"Товар '{p.id}': отрицательная цена или вес")


# ============ Замыкания-фильтры ============


def by_category(cat_id: str):
    return lambda p: p.category_id == cat_id


def by_name_substring(term: str):
    """Поиск без учёта регистра по названию"""
    needle = term.strip().lower()
    return lambda p: bool(needle) and needle in p.name.lower()


class CatalogStore:
    """Статический каталог: только чтение, "не найдено" - Maybe.nothing()"""

    def __init__(self, categories: Tuple[Category, ...], products: Tuple[Product, ...]):
        self.categories = categories
        self.products = products

    @classmethod
    def from_file(cls, path: Union[str, Path] = DEFAULT_CATALOG_PATH) -> "CatalogStore":
        return cls(*load_catalog(path))

    def find_category(self, category_id: str) -> Maybe[Category]:
        return Maybe.of(next((c for c in self.categories if c.id == category_id), None))

    def find_product(self, product_id: str) -> Maybe[Product]:
        return Maybe.of(next((p for p in self.products if p.id == product_id), None))

    def products_by_category(self, category_id: str) -> Tuple[Product, ...]:
        """Только точное совпадение категории, без подкатегорий"""
        return tuple(filter(by_category(category_id), self.products))

    def top_level_categories(self) -> Tuple[Category, ...]:
        return tuple(c for c in self.categories if c.parent_id is None)

    def subcategories(self, category_id: str) -> Tuple[Category, ...]:
        return tuple(c for c in self.categories if c.parent_id == category_id)

    def section_products(self, category_id: str) -> Tuple[Product, ...]:
        """Товары раздела вместе с подразделами (раздел "Велосипеды")"""
        return collect_section_products(self.categories, self.products, category_id)

    def popular_products(self) -> Tuple[Product, ...]:
        return tuple(p for p in self.products if p.popular)

    def sale_products(self) -> Tuple[Product, ...]:
        return tuple(p for p in self.products if p.sale)

    def search(self, term: str) -> Tuple[Product, ...]:
        return tuple(filter(by_name_substring(term), self.products))
