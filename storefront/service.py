import logging
from typing import Optional, Tuple
from .cart import CartManager
from .catalog import CatalogStore
from .domain import CartLineItem, CheckoutForm, Product, Totals
from .ftypes import Either
from .pricing import calculate_cart_totals
from .session import SessionStore
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


class StorefrontService:
    """Фасад магазина: каталог + корзина + сессия"""

    def __init__(self, catalog: CatalogStore, cart: CartManager, session: SessionStore):
        self.catalog = catalog
        self.cart = cart
        self.session = session

    @classmethod
    def create(cls, catalog: CatalogStore, store: KeyValueStore) -> "StorefrontService":
        return cls(catalog, CartManager(store), SessionStore(store))

    def current_totals(
        self, shipping_method: Optional[str] = None, payment_method: Optional[str] = None
    ) -> Totals:
        """Итоги текущей корзины с учётом вошедшего пользователя"""
        return calculate_cart_totals(
            self.cart.get_cart(),
            self.catalog.find_product,
            shipping_method,
            payment_method,
            self.session.get_current_user().is_some(),
        )

    def cart_rows(self) -> Tuple[Tuple[int, CartLineItem, Product], ...]:
        """Строки корзины с товарами; индекс сохраняется для изменения/удаления"""
        return tuple(
            (index, item, product)
            for index, item in enumerate(self.cart.get_cart())
            for product in (self.catalog.find_product(item.product_id).get_or_else(None),)
            if product is not None
        )

    def checkout(self, form: CheckoutForm) -> Either[dict, Totals]:
        """
        Оформление заказа → Either[error, Totals]
        Left если корзина пуста или не заполнено обязательное поле.
        Right: корзина очищается, заказ никуда не отправляется (демо).
        """
        if not self.cart.get_cart():
            return Either.left({"error": "Ваша корзина пуста."})

        missing = [
            label
            for label, value in (("Имя", form.name), ("Адрес", form.address), ("Телефон", form.phone))
            if not (value or "").strip()
        ]
        if missing:
            return Either.left({"error": f"Заполните поля: {', '.join(missing)}"})

        totals = self.current_totals(form.shipping_method, form.payment_method)
        self.cart.clear_cart()
        logger.info(
            "Заказ оформлен: %s, %s/%s, итого %.2f",
            form.name,
            form.shipping_method,
            form.payment_method,
            totals.total,
        )
        return Either.right(totals)
