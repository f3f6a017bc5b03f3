from dataclasses import dataclass, field
from typing import Optional, Tuple, Dict


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category_id: str
    price: float  # рубли
    weight: float  # кг
    options: Dict[str, Tuple[str, ...]] = field(default_factory=dict, hash=False)
    description: str = ""
    image: str = ""
    sale: bool = False
    popular: bool = False


@dataclass(frozen=True)
class CartLineItem:
    """Строка корзины; для слияния сравнивается пара (product_id, options)"""

    product_id: str
    quantity: int
    options: Dict[str, str] = field(default_factory=dict, hash=False)

    def same_line(self, product_id: str, options: Dict[str, str]) -> bool:
        return self.product_id == product_id and self.options == options


@dataclass(frozen=True)
class User:
    email: str
    name: str


@dataclass(frozen=True)
class Totals:
    subtotal: float
    shipping_cost: float
    cod_surcharge: float
    total: float


@dataclass(frozen=True)
class CheckoutForm:
    name: str
    address: str
    phone: str
    shipping_method: str = "delivery"
    payment_method: str = "card"
