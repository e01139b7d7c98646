from __future__ import annotations

import pytest

from defi.units import to_base_units


def test_to_base_units():
    assert to_base_units("0.01", 6) == 10_000
    assert to_base_units("1", 18) == 10**18
    assert to_base_units("0", 6) == 0


def test_to_base_units_truncates_extra_precision():
    assert to_base_units("0.0000019", 6) == 1


@pytest.mark.parametrize("amount", ["-1", "abc", "NaN", "Infinity"])
def test_to_base_units_rejects_invalid(amount):
    with pytest.raises(ValueError):
        to_base_units(amount, 6)
