"""Brazilian document helpers."""

import pytest

from caoguia.schemas.documents import digits_only, is_valid_cnpj


def test_digits_only():
    assert digits_only("11.222.333/0001-81") == "11222333000181"
    assert digits_only("(48) 99999-0000") == "48999990000"


@pytest.mark.parametrize(
    "cnpj",
    ["11.222.333/0001-81", "11222333000181", "11.444.777/0001-61"],
)
def test_valid_cnpj(cnpj):
    assert is_valid_cnpj(cnpj)


@pytest.mark.parametrize(
    "cnpj",
    [
        "11.222.333/0001-82",  # wrong second check digit
        "11.222.333/0001-91",  # wrong first check digit
        "11111111111111",      # repeated digits
        "1122233300018",       # too short
        "",
    ],
)
def test_invalid_cnpj(cnpj):
    assert not is_valid_cnpj(cnpj)
