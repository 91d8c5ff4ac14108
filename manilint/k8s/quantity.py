"""Kubernetes resource quantity parsing.

Quantities such as ``500m``, ``1.5``, ``128Mi`` or ``1e3`` are parsed into
Decimals in base units (cores for CPU, bytes for memory) so requests and
limits can be compared.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Union

_BINARY_SUFFIXES = {
    "Ki": Decimal(2) ** 10,
    "Mi": Decimal(2) ** 20,
    "Gi": Decimal(2) ** 30,
    "Ti": Decimal(2) ** 40,
    "Pi": Decimal(2) ** 50,
    "Ei": Decimal(2) ** 60,
}

_DECIMAL_SUFFIXES = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "": Decimal(1),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}

_QUANTITY_RE = re.compile(
    r"^(?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+))"
    r"(?:(?P<exponent>[eE][+-]?\d+)|(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|n|u|m|k|M|G|T|P|E))?$"
)


def parse_quantity(value: Union[str, int, float]) -> Decimal:
    """Parse a Kubernetes quantity into a Decimal in base units.

    Args:
        value: Quantity as written in a manifest

    Returns:
        Decimal value (e.g. "500m" -> 0.5, "1Ki" -> 1024)

    Raises:
        ValueError: If value is not a valid quantity
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Invalid quantity: {value!r}")
    if not isinstance(value, str):
        raise ValueError(f"Invalid quantity: {value!r}")

    match = _QUANTITY_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid quantity: {value!r}")

    number = Decimal(match.group("number"))
    if match.group("exponent"):
        return number * (Decimal(10) ** int(match.group("exponent")[1:]))

    suffix = match.group("suffix") or ""
    if suffix in _BINARY_SUFFIXES:
        return number * _BINARY_SUFFIXES[suffix]
    return number * _DECIMAL_SUFFIXES[suffix]
