from typing import Any


def normalize_token(value: Any, *, upper: bool) -> Any:
    """
    Strip a settings token and fold its case, e.g. " debug " -> "DEBUG".

    Non-string values are returned unchanged so pydantic reports the type error itself.
    """
    if not isinstance(value, str):
        return value
    token = value.strip()
    return token.upper() if upper else token.lower()
