# storefront/ftypes.py
# Ядро магазина не бросает ошибки вызывающему коду: поиск в каталоге отдаёт
# Maybe, разбор сохранённых записей и проверка форм - Either.

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
L = TypeVar("L")
R = TypeVar("R")


@dataclass(frozen=True)
class Maybe(Generic[T]):
    """Результат поиска; None внутри означает "не найдено" """

    value: Optional[T]

    @staticmethod
    def of(value: Optional[T]) -> "Maybe[T]":
        return Maybe(value)

    @staticmethod
    def nothing() -> "Maybe[None]":
        return Maybe(None)

    def is_some(self) -> bool:
        return self.value is not None

    def is_none(self) -> bool:
        return self.value is None

    def map(self, fn: Callable[[T], U]) -> "Maybe[U]":
        """Название категории по id и т.п.; None из fn тоже даёт "ничего" """
        return Maybe.of(fn(self.value)) if self.is_some() else Maybe.nothing()

    def filter(self, predicate: Callable[[T], bool]) -> "Maybe[T]":
        return self if self.is_some() and predicate(self.value) else Maybe.nothing()

    def get_or_else(self, default: U) -> T | U:
        return self.value if self.is_some() else default


@dataclass(frozen=True)
class Either(Generic[L, R]):
    """
    Left - причина сбоя (строка для логов или {"error": ...} для интерфейса),
    Right - результат. Вызывающий код берёт get_or_else(значение по умолчанию).
    """

    is_left: bool
    value: Union[L, R]

    @staticmethod
    def left(value: L) -> "Either[L, R]":
        return Either(True, value)

    @staticmethod
    def right(value: R) -> "Either[L, R]":
        return Either(False, value)

    @property
    def is_right(self) -> bool:
        return not self.is_left

    def get_or_else(self, default: U) -> R | U:
        return self.value if self.is_right else default  # type: ignore[return-value]
