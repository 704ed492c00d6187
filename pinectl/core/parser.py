from pineipc.core.models.wire import VALUE_WIDTHS


class ParseError(ValueError):
    pass


def parse_int(raw: str, what: str = "value") -> int:
    """
    Parse a non-negative integer written in decimal or with a
    0x / 0o / 0b prefix. Underscores are accepted as separators.
    """
    s = raw.strip().lower()
    try:
        number = int(s, 0)
    except ValueError:
        raise ParseError(f"Invalid {what}: '{raw}'") from None

    if number < 0:
        raise ParseError(f"Invalid {what}: '{raw}' must not be negative")
    return number


def parse_width(raw: str | int) -> int:
    try:
        width = int(raw)
    except ValueError:
        raise ParseError(f"Invalid width: '{raw}'") from None

    if width not in VALUE_WIDTHS:
        choices = ", ".join(str(w) for w in VALUE_WIDTHS)
        raise ParseError(f"Invalid width: {width} (choose among {choices})")
    return width


def format_address(address: int) -> str:
    return f"{address:#010x}"
