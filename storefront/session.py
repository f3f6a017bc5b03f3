import json
import logging
from typing import Optional, Tuple
from .domain import User
from .ftypes import Either, Maybe
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

USER_KEY = "bike_shop_user"
SUBSCRIBERS_KEY = "bike_shop_subscribers"
SEARCH_TERM_KEY = "bike_shop_search_term"


def _decode_user(raw: Optional[str]) -> Either[str, Optional[User]]:
    if raw is None:
        return Either.right(None)
    try:
        data = json.loads(raw)
    except ValueError as exc:
        return Either.left(f"пользователь не JSON: {exc}")
    if data is None:
        return Either.right(None)
    if not isinstance(data, dict):
        return Either.left("пользователь не объект")
    email, name = data.get("email"), data.get("name")
    if not isinstance(email, str) or not isinstance(name, str):
        return Either.left("у пользователя нет email/name")
    return Either.right(User(email=email, name=name))


def _decode_subscribers(raw: Optional[str]) -> Either[str, Tuple[str, ...]]:
    if raw is None:
        return Either.right(())
    try:
        data = json.loads(raw)
    except ValueError as exc:
        return Either.left(f"подписчики не JSON: {exc}")
    if not isinstance(data, list):
        return Either.left("подписчики не список")
    # дубликаты из чужой записи убираем, порядок сохраняем
    return Either.right(tuple(dict.fromkeys(e for e in data if isinstance(e, str))))


class SessionStore:
    """Текущий пользователь, подписчики рассылки и поисковый запрос"""

    def __init__(self, store: KeyValueStore):
        self.store = store

    # ============ Пользователь ============

    def get_current_user(self) -> Maybe[User]:
        decoded = _decode_user(self.store.get(USER_KEY))
        if decoded.is_left:
            logger.warning("Запись пользователя повреждена: %s", decoded.value)
        return Maybe.of(decoded.get_or_else(None))

    def set_current_user(self, user: User) -> None:
        self.store.set(
            USER_KEY,
            json.dumps({"email": user.email, "name": user.name}, ensure_ascii=False),
        )

    def log_in(self, email: str, name: str) -> Either[str, User]:
        """Вход и регистрация в демо одинаковы: нужны непустые email и имя"""
        email, name = (email or "").strip(), (name or "").strip()
        if not email or not name:
            return Either.left("Укажите e-mail и имя")
        user = User(email=email, name=name)
        self.set_current_user(user)
        logger.info("Пользователь вошёл: %s", email)
        return Either.right(user)

    def log_out_user(self) -> None:
        self.store.remove(USER_KEY)

    # ============ Подписка ============

    def subscribers(self) -> Tuple[str, ...]:
        decoded = _decode_subscribers(self.store.get(SUBSCRIBERS_KEY))
        if decoded.is_left:
            logger.warning("Запись подписчиков повреждена: %s", decoded.value)
        return decoded.get_or_else(())

    def subscribe_email(self, email: str) -> bool:
        """Точное сравнение строк, без нормализации; True если адрес добавлен"""
        current = self.subscribers()
        if not email or email in current:
            return False
        self.store.set(SUBSCRIBERS_KEY, json.dumps(list(current) + [email], ensure_ascii=False))
        logger.info("Новый подписчик: %s", email)
        return True

    # ============ Поисковый запрос ============

    def set_search_term(self, term: str) -> None:
        self.store.set(SEARCH_TERM_KEY, term)

    def pop_search_term(self) -> Maybe[str]:
        """Запрос читается один раз и сразу удаляется"""
        term = self.store.get(SEARCH_TERM_KEY)
        if term is not None:
            self.store.remove(SEARCH_TERM_KEY)
        return Maybe.of(term).filter(bool)
