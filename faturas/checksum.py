import re


def _only_digits(value: str) -> str:
    return re.sub(r"[^0-9]", "", value or "")


def modulo10(block: str) -> int:
    """Check digit of a linha digitavel field (weights 2,1 from the right)."""
    digits = _only_digits(block)
    total = 0
    weight = 2
    for char in reversed(digits):
        partial = int(char) * weight
        if partial > 9:
            partial = partial // 10 + partial % 10
        total += partial
        weight = 1 if weight == 2 else 2
    return (10 - total % 10) % 10


def modulo11(block: str) -> int:
    """General check digit of a bank barcode (weights 2..9 from the right).

    Results 0, 10 and 11 are mapped to 1 as the FEBRABAN layout requires.
    """
    digits = _only_digits(block)
    total = 0
    weight = 2
    for char in reversed(digits):
        total += int(char) * weight
        weight = 2 if weight >= 9 else weight + 1
    check = 11 - total % 11
    if check in (0, 10, 11):
        return 1
    return check
