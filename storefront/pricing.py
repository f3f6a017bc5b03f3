"""
Расчёт итогов корзины: скидки, доставка, наложенный платёж.

Скидка распродажи применяется к цене единицы товара, скидка
зарегистрированного пользователя - один раз к сумме. Внутри ничего не
округляется, округление только при выводе (formatting.format_price).
"""

from functools import reduce
from typing import Callable, Optional, Tuple
from .domain import CartLineItem, Product, Totals
from .ftypes import Maybe

SALE_DISCOUNT = 0.05
USER_DISCOUNT = 0.02
COD_SURCHARGE = 0.05

SHIPPING_FREE_THRESHOLD = 7000
SHIPPING_SMALL_LIMIT = 3  # кг
SHIPPING_MEDIUM_COST = 300
SHIPPING_LARGE_COST = 500

DELIVERY = "delivery"
MAIL = "mail"

CARD = "card"
COD = "cod"
INVOICE = "invoice"

SHIPPING_METHODS = {DELIVERY: "Курьером", MAIL: "Почтой России"}
PAYMENT_METHODS = {
    CARD: "Банковская карта",
    COD: "Наложенный платеж",
    INVOICE: "Безналичный расчет (счет)",
}


def unit_price(product: Product) -> float:
    if product.sale:
        return product.price * (1 - SALE_DISCOUNT)
    return product.price


def line_total(product: Product, quantity: int) -> float:
    return unit_price(product) * quantity


def shipping_cost(method: Optional[str], subtotal: float, total_weight: float) -> float:
    """Курьер бесплатен строго выше порога; почта зависит от веса"""
    if method == DELIVERY:
        return 0 if subtotal > SHIPPING_FREE_THRESHOLD else SHIPPING_MEDIUM_COST
    if method == MAIL:
        if total_weight <= SHIPPING_SMALL_LIMIT:
            return SHIPPING_MEDIUM_COST
        return SHIPPING_LARGE_COST
    return 0


def cod_surcharge(shipping_method: Optional[str], payment_method: Optional[str], subtotal: float) -> float:
    if shipping_method == MAIL and payment_method == COD:
        return subtotal * COD_SURCHARGE
    return 0


def calculate_cart_totals(
    cart: Tuple[CartLineItem, ...],
    find_product: Callable[[str], Maybe[Product]],
    shipping_method: Optional[str] = None,
    payment_method: Optional[str] = None,
    user_present: bool = False,
) -> Totals:
    """
    Чистая функция: корзина + выбранные способы -> Totals.
    Товар ищется через find_product (обычно CatalogStore.find_product);
    строки с удалёнными из каталога товарами пропускаются.
    """

    def accumulate(acc: Tuple[float, float], item: CartLineItem) -> Tuple[float, float]:
        subtotal, weight = acc
        found = find_product(item.product_id)
        if found.is_none():
            return acc
        product = found.value
        return (
            subtotal + line_total(product, item.quantity),
            weight + product.weight * item.quantity,
        )

    subtotal, total_weight = reduce(accumulate, cart, (0, 0))

    if user_present:
        subtotal *= 1 - USER_DISCOUNT

    shipping = shipping_cost(shipping_method, subtotal, total_weight)
    surcharge = cod_surcharge(shipping_method, payment_method, subtotal)

    return Totals(
        subtotal=subtotal,
        shipping_cost=shipping,
        cod_surcharge=surcharge,
        total=subtotal + shipping + surcharge,
    )
