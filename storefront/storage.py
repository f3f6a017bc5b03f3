"""
Порт постоянного хранилища "ключ -> строка" (аналог localStorage браузера).

Корзина, пользователь и подписчики хранятся как JSON-строки под отдельными
ключами. Адаптеры не кэшируют значения между чтениями: каждое изменение -
это чтение, изменение и полная запись обратно. Блокировок нет, при двух
одновременных сессиях побеждает последняя запись.
"""

import json
import logging
import os
import re
import tempfile
import uuid
from pathlib import Path
from typing import MutableMapping, Optional, Protocol, Union

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """
    Хранилище поверх любого MutableMapping.
    В тестах это обычный dict, в приложении - st.session_state.
    """

    def __init__(self, mapping: Optional[MutableMapping] = None):
        self._data = {} if mapping is None else mapping

    def get(self, key: str) -> Optional[str]:
        value = self._data.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]


class JsonFileStore:
    """
    Один JSON-объект на диске {ключ: строка}.
    Нечитаемый файл считается пустым; ошибки записи логируются и не
    пробрасываются (запись "по возможности").
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_all(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Хранилище %s не прочитано: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Хранилище %s: ожидался объект, получено %s", self.path, type(data).__name__)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: dict) -> None:
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=self.path.parent, suffix=".tmp", delete=False, encoding="utf-8"
            ) as tmp:
                tmp_path = tmp.name
                json.dump(data, tmp, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.warning("Не удалось записать %s: %s", self.path, exc)
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


# ============ Хранилище отдельного посетителя ============

_VISITOR_ID = re.compile(r"[0-9a-f]{32}")


def new_visitor_id() -> str:
    return uuid.uuid4().hex


def is_valid_visitor_id(visitor_id) -> bool:
    """Только uuid4().hex: id попадает в имя файла"""
    return isinstance(visitor_id, str) and bool(_VISITOR_ID.fullmatch(visitor_id))


def visitor_store(storage_dir: Union[str, Path], visitor_id: str) -> JsonFileStore:
    """
    Свой файл на каждого посетителя, как localStorage у каждого браузера.
    Общий файл у посетителей возможен только при одинаковом id (вкладки
    одного браузера), там по-прежнему побеждает последняя запись.
    """
    if not is_valid_visitor_id(visitor_id):
        raise ValueError(f"Некорректный id посетителя: {visitor_id!r}")
    return JsonFileStore(Path(storage_dir) / f"{visitor_id}.json")
