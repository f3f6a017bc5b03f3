import json
import logging
import math
from typing import Dict, Optional, Tuple
from .domain import CartLineItem
from .ftypes import Either
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

CART_KEY = "bike_shop_cart"


# ============ Сериализация записи корзины ============


def _decode_item(raw) -> Either[str, CartLineItem]:
    if not isinstance(raw, dict):
        return Either.left(f"строка корзины не объект: {raw!r}")

    product_id = raw.get("productId")
    quantity = raw.get("quantity")
    options = raw.get("options", {})

    if not isinstance(product_id, str):
        return Either.left(f"productId не строка: {product_id!r}")
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        return Either.left(f"quantity не число: {quantity!r}")
    if not math.isfinite(quantity):
        return Either.left(f"quantity не конечно: {quantity!r}")
    if not isinstance(options, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in options.items()
    ):
        return Either.left(f"options некорректны: {options!r}")

    return Either.right(CartLineItem(product_id, quantity, dict(options)))


def decode_cart(raw: Optional[str]) -> Either[str, Tuple[CartLineItem, ...]]:
    """
    JSON-строка -> Either[причина, строки корзины].
    Left только если запись целиком не список; отдельные битые строки
    пропускаются, остальные сохраняются.
    """
    if raw is None:
        return Either.right(())
    try:
        data = json.loads(raw)
    except ValueError as exc:
        return Either.left(f"корзина не JSON: {exc}")
    if not isinstance(data, list):
        return Either.left("корзина не список")

    items = []
    for entry in data:
        decoded = _decode_item(entry)
        if decoded.is_left:
            logger.warning("Строка корзины пропущена: %s", decoded.value)
            continue
        items.append(decoded.value)
    return Either.right(tuple(items))


def encode_cart(items: Tuple[CartLineItem, ...]) -> str:
    return json.dumps(
        [
            {
                "productId": i.product_id,
                "quantity": i.quantity,
                "options": dict(i.options),
            }
            for i in items
        ],
        ensure_ascii=False,
    )


# ============ Операции над корзиной (чистые функции) ============


def merge_item(
    items: Tuple[CartLineItem, ...], product_id: str, quantity: int, options: Dict[str, str]
) -> Tuple[CartLineItem, ...]:
    """Увеличивает количество совпадающей строки или добавляет новую в конец"""
    if any(i.same_line(product_id, options) for i in items):
        return tuple(
            CartLineItem(i.product_id, i.quantity + quantity, i.options)
            if i.same_line(product_id, options)
            else i
            for i in items
        )
    return items + (CartLineItem(product_id, quantity, dict(options)),)


def set_quantity(
    items: Tuple[CartLineItem, ...], index: int, quantity: int
) -> Tuple[CartLineItem, ...]:
    """Количество <= 0 удаляет строку целиком"""
    if quantity <= 0:
        return drop_index(items, index)
    return tuple(
        CartLineItem(i.product_id, quantity, i.options) if n == index else i
        for n, i in enumerate(items)
    )


def drop_index(items: Tuple[CartLineItem, ...], index: int) -> Tuple[CartLineItem, ...]:
    return tuple(i for n, i in enumerate(items) if n != index)


class CartManager:
    """
    Корзина в постоянном хранилище.

    Каждое изменение заново читает запись, строит новую корзину и сразу
    записывает её целиком. Битая запись читается как пустая корзина,
    битая строка пропускается, индекс вне диапазона - ничего не делает.
    Исключений наружу нет.
    """

    def __init__(self, store: KeyValueStore, key: str = CART_KEY):
        self.store = store
        self.key = key

    def get_cart(self) -> Tuple[CartLineItem, ...]:
        decoded = decode_cart(self.store.get(self.key))
        if decoded.is_left:
            logger.warning("Запись корзины повреждена, используется пустая: %s", decoded.value)
        return decoded.get_or_else(())

    def _save(self, items: Tuple[CartLineItem, ...]) -> None:
        self.store.set(self.key, encode_cart(items))

    def add_to_cart(
        self, product_id: str, quantity: int = 1, options: Optional[Dict[str, str]] = None
    ) -> None:
        options = {k: str(v) for k, v in (options or {}).items()}
        self._save(merge_item(self.get_cart(), product_id, quantity, options))
        logger.info("В корзину: %s x%s %s", product_id, quantity, options)

    def update_cart_item(self, index: int, quantity: int) -> None:
        cart = self.get_cart()
        if not 0 <= index < len(cart):
            logger.debug("update_cart_item: индекс %s вне корзины", index)
            return
        self._save(set_quantity(cart, index, quantity))

    def remove_cart_item(self, index: int) -> None:
        cart = self.get_cart()
        if not 0 <= index < len(cart):
            logger.debug("remove_cart_item: индекс %s вне корзины", index)
            return
        self._save(drop_index(cart, index))

    def clear_cart(self) -> None:
        self._save(())

    def cart_count(self) -> int:
        return sum(i.quantity for i in self.get_cart())
