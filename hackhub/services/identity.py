from typing import Any, Optional


def extract_id(value: Any) -> Optional[str]:
    """
    Return the stable identifier of a raw id or a loaded model.

    Ids reach the access checks as ints, strings from path parameters, or
    whole User/Judge objects; they are always compared as strings.
    """
    if value is None:
        return None
    if hasattr(value, "id"):
        value = value.id
        if value is None:
            return None
    return str(value)


def same_id(left: Any, right: Any) -> bool:
    """True when both values resolve to the same non-empty identifier."""
    left_id = extract_id(left)
    return left_id is not None and left_id == extract_id(right)
