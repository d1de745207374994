"""Brazilian document helpers (CPF, RG, CNPJ, CEP, phone).

Inputs arrive formatted ("12.345.678/0001-95"); everything is stored as
digits only.
"""

import re

_NON_DIGITS = re.compile(r"\D")


def digits_only(value: str) -> str:
    return _NON_DIGITS.sub("", value)


def _cnpj_check_digit(digits: str) -> int:
    weights = list(range(len(digits) - 7, 1, -1)) + list(range(9, 1, -1))
    total = sum(int(d) * w for d, w in zip(digits, weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cnpj(value: str) -> bool:
    """Validate the two CNPJ check digits."""
    cnpj = digits_only(value)
    if len(cnpj) != 14 or cnpj == cnpj[0] * 14:
        return False
    first = _cnpj_check_digit(cnpj[:12])
    second = _cnpj_check_digit(cnpj[:13])
    return cnpj[12:] == f"{first}{second}"
