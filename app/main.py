import sys
import os
import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from storefront.catalog import CatalogStore
from storefront.config import get_settings
from storefront.domain import CheckoutForm, Product
from storefront.formatting import format_price, coerce_quantity
from storefront.logging_setup import configure_logging, get_logger
from storefront.pricing import (
    DELIVERY,
    CARD,
    SALE_DISCOUNT,
    SHIPPING_METHODS,
    PAYMENT_METHODS,
    unit_price,
)
from storefront.service import StorefrontService
from storefront.storage import MemoryStore, is_valid_visitor_id, new_visitor_id, visitor_store

settings = get_settings()
configure_logging(settings.log_level, settings.log_format)
logger = get_logger("storefront.app")

PAGES = ["🏠 Главная", "🚲 Каталог", "🛒 Корзина", "📦 Оформление заказа"]
HOME, CATALOG, CART, CHECKOUT = PAGES
ALL_SECTIONS = "Все разделы"


# ============ Кэширование данных ============
@st.cache_resource
def get_catalog():
    return CatalogStore.from_file(settings.catalog_path)


def get_store():
    if settings.storage_backend == "session":
        if "storage" not in st.session_state:
            st.session_state.storage = {}
        return MemoryStore(st.session_state.storage)

    # id посетителя живёт в адресе страницы и переживает перезагрузку
    visitor_id = st.query_params.get("visitor")
    if not is_valid_visitor_id(visitor_id):
        visitor_id = new_visitor_id()
        st.query_params["visitor"] = visitor_id
    return visitor_store(settings.storage_dir, visitor_id)


# ============ Инициализация ============
st.set_page_config(
    page_title=settings.shop_name,
    page_icon="🚲",
    layout="wide",
    initial_sidebar_state="expanded",
)

catalog = get_catalog()
shop = StorefrontService.create(catalog, get_store())

if "page" not in st.session_state:
    st.session_state.page = HOME
if "product_id" not in st.session_state:
    st.session_state.product_id = None
if "show_search" not in st.session_state:
    st.session_state.show_search = False
if "order_done" not in st.session_state:
    st.session_state.order_done = None


# ============ Навигация (колбэки) ============
def open_product(product_id: str):
    st.session_state.product_id = product_id


def close_product():
    st.session_state.product_id = None
    st.session_state.show_search = False
    st.session_state.order_done = None


def submit_search():
    term = st.session_state.get("search_input", "").strip()
    st.session_state.page = CATALOG
    st.session_state.product_id = None
    st.session_state.catalog_section = ALL_SECTIONS
    if term:
        shop.session.set_search_term(term)
        st.session_state.show_search = True
    else:
        st.session_state.show_search = False


def section_label(category_id: str) -> str:
    return catalog.find_category(category_id).map(lambda c: c.name).get_or_else(category_id)


# ============ Карточка товара ============
def product_card(product: Product, key_prefix: str):
    with st.container(border=True):
        st.markdown(f"**{product.name}**")
        st.write(format_price(unit_price(product)))
        if product.sale:
            st.caption(f"🏷️ Скидка {int(SALE_DISCOUNT * 100)}%")
        st.button(
            "Подробнее",
            key=f"{key_prefix}_{product.id}",
            on_click=open_product,
            args=(product.id,),
        )


def product_grid(products, key_prefix: str, per_row: int = 3):
    if not products:
        st.info("Товары не найдены.")
        return
    for start in range(0, len(products), per_row):
        cols = st.columns(per_row)
        for col, product in zip(cols, products[start : start + per_row]):
            with col:
                product_card(product, key_prefix)


def totals_block(totals):
    st.write(f"Подытог: {format_price(totals.subtotal)}")
    st.write(f"Доставка: {format_price(totals.shipping_cost)}")
    if totals.cod_surcharge > 0:
        st.write(f"Наложенный платеж: {format_price(totals.cod_surcharge)}")
    st.markdown(f"### Итого: **{format_price(totals.total)}**")


# ============ SIDEBAR ============
with st.sidebar:
    st.header(f"🚲 {settings.shop_name}")
    st.radio(
        "Раздел сайта",
        PAGES,
        key="page",
        on_change=close_product,
        label_visibility="collapsed",
    )
    st.caption(f"🛒 В корзине: **{shop.cart.cart_count()}**")

    with st.form("search_form", clear_on_submit=True):
        st.text_input("Поиск", key="search_input", placeholder="Поиск")
        st.form_submit_button("🔍 Найти", on_click=submit_search)

    st.divider()

    user = shop.session.get_current_user()
    if user.is_some():
        st.write(f"👤 {user.value.name} ({user.value.email})")
        if st.button("Выйти"):
            shop.session.log_out_user()
            st.rerun()
    else:
        with st.form("auth_form", clear_on_submit=True):
            st.markdown("##### Вход / Регистрация")
            email = st.text_input("E-mail")
            name = st.text_input("Ваше имя")
            if st.form_submit_button("Войти"):
                result = shop.session.log_in(email, name)
                if result.is_right:
                    st.rerun()
                else:
                    st.error(result.value)

    st.divider()

    with st.form("subscribe_form", clear_on_submit=True):
        st.markdown("##### Подписка")
        st.caption("Введите e-mail, чтобы получать новости и скидки:")
        sub_email = st.text_input("E-mail", key="subscribe_email")
        if st.form_submit_button("Подписаться"):
            if shop.session.subscribe_email(sub_email.strip()):
                st.success("Вы подписались на новости!")


# ============ PAGE: ТОВАР ============
def render_product(product_id: str):
    found = catalog.find_product(product_id)
    st.button("← Назад", on_click=close_product)
    if found.is_none():
        st.warning("Товар не найден")
        return

    product = found.value
    st.header(product.name)
    price_line = format_price(product.price)
    if product.sale:
        price_line += f" (скидка {int(SALE_DISCOUNT * 100)}%)"
    st.subheader(price_line)
    st.write(product.description)
    st.caption(f"Раздел: {section_label(product.category_id)} · Вес: {product.weight} кг")

    options = {}
    if "colour" in product.options:
        options["colour"] = st.selectbox("Цвет", product.options["colour"])
    if "size" in product.options:
        options["size"] = st.selectbox("Размер", product.options["size"])
    qty = coerce_quantity(st.number_input("Количество", min_value=1, value=1, step=1))

    if st.button("Добавить в корзину", type="primary"):
        shop.cart.add_to_cart(product.id, qty, options)
        st.success("Товар добавлен в корзину!")


# ============ PAGE: ГЛАВНАЯ ============
def render_home():
    st.title(f"Добро пожаловать в {settings.shop_name}")
    st.caption("Лучший выбор велосипедов и аксессуаров для вас")

    st.subheader("Популярные товары")
    product_grid(catalog.popular_products(), "popular")

    st.subheader("Распродажа")
    product_grid(catalog.sale_products(), "sale")


# ============ PAGE: КАТАЛОГ ============
def render_catalog():
    st.header("🚲 Каталог")

    section_ids = [ALL_SECTIONS] + [c.id for c in catalog.categories]
    section = st.selectbox(
        "Раздел",
        section_ids,
        key="catalog_section",
        format_func=lambda cid: cid if cid == ALL_SECTIONS else section_label(cid),
    )

    if section != ALL_SECTIONS:
        st.subheader(section_label(section))
        product_grid(catalog.products_by_category(section), f"sec_{section}")
        return

    if st.session_state.show_search:
        st.session_state.show_search = False
        term = shop.session.pop_search_term()
        if term.is_some():
            st.subheader(f'Результаты поиска по запросу "{term.value}"')
            product_grid(catalog.search(term.value), "search")
            return

    for cat in catalog.top_level_categories():
        st.subheader(cat.name)
        product_grid(catalog.section_products(cat.id), f"top_{cat.id}")


# ============ PAGE: КОРЗИНА ============
def render_cart():
    st.header("🛒 Корзина")

    rows = shop.cart_rows()
    if not rows:
        st.info("Ваша корзина пуста.")
        return

    header = st.columns([4, 2, 2, 2, 1])
    for col, title in zip(header, ["Товар", "Цена", "Количество", "Сумма", ""]):
        col.markdown(f"**{title}**")

    for index, item, product in rows:
        cols = st.columns([4, 2, 2, 2, 1])
        with cols[0]:
            st.write(product.name)
            if item.options:
                st.caption(", ".join(item.options.values()))
        with cols[1]:
            st.write(format_price(unit_price(product)))
        with cols[2]:
            new_qty = st.number_input(
                "Кол-во",
                min_value=0,
                value=item.quantity,
                step=1,
                key=f"cart_qty_{index}_{item.quantity}",
                label_visibility="collapsed",
            )
            if new_qty != item.quantity:
                shop.cart.update_cart_item(index, int(new_qty))
                st.rerun()
        with cols[3]:
            st.write(format_price(unit_price(product) * item.quantity))
        with cols[4]:
            if st.button("🗑️", key=f"remove_{index}"):
                shop.cart.remove_cart_item(index)
                st.rerun()

    st.divider()
    totals_block(shop.current_totals(DELIVERY, CARD))


# ============ PAGE: ОФОРМЛЕНИЕ ============
def render_checkout():
    st.header("📦 Оформление заказа")

    if st.session_state.order_done is not None:
        st.success("Спасибо за заказ! Мы свяжемся с вами для подтверждения.")
        totals_block(st.session_state.order_done)
        return

    if not shop.cart.get_cart():
        st.info("Ваша корзина пуста.")
        return

    # способы доставки/оплаты вне формы, чтобы итоги пересчитывались сразу
    shipping = st.selectbox(
        "Способ доставки", list(SHIPPING_METHODS), format_func=SHIPPING_METHODS.get
    )
    payment = st.selectbox(
        "Способ оплаты", list(PAYMENT_METHODS), format_func=PAYMENT_METHODS.get
    )
    totals_block(shop.current_totals(shipping, payment))

    with st.form("checkout_form"):
        name = st.text_input("Имя")
        address = st.text_input("Адрес")
        phone = st.text_input("Телефон")
        submitted = st.form_submit_button("Подтвердить заказ", type="primary")

    if submitted:
        result = shop.checkout(CheckoutForm(name, address, phone, shipping, payment))
        if result.is_right:
            st.session_state.order_done = result.value
            logger.info("order_placed", shipping=shipping, payment=payment, total=result.value.total)
            st.rerun()
        else:
            st.error(result.value["error"])


# ============ Выбор страницы ============
if st.session_state.product_id:
    render_product(st.session_state.product_id)
elif st.session_state.page == HOME:
    render_home()
elif st.session_state.page == CATALOG:
    render_catalog()
elif st.session_state.page == CART:
    render_cart()
elif st.session_state.page == CHECKOUT:
    render_checkout()
