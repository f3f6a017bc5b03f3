def format_price(value: float) -> str:
    """Округляет до рубля, группирует разряды пробелом: 60000 -> '60 000 ₽'"""
    return f"{int(value + 0.5):,}".replace(",", " ") + " ₽"


def coerce_quantity(raw, default: int = 1) -> int:
    """
    Количество из пользовательского ввода.
    Нечисловое или нулевое значение заменяется на default, как parseInt(...) || 1.
    """
    try:
        qty = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return qty or default
