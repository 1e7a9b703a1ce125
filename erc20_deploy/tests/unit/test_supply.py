import pytest

from erc20_deploy.deploy.supply import SupplyAmount, scale_supply
from erc20_deploy.utils.exceptions import InvalidAmount


class TestScaleSupply:
    """Whole-unit supply to base units"""

    def test_scales_by_decimals(self):
        amount = scale_supply("1000", 18)
        assert amount.scaled_integer == 1000 * 10**18
        assert amount.raw_whole_units == "1000"
        assert amount.decimals == 18

    def test_beyond_64_bit_range_is_exact(self):
        amount = scale_supply("1000000000000000000", 18)
        assert amount.scaled_integer == 10**36
        assert amount.scaled_integer > 2**64

    def test_zero(self):
        assert scale_supply("0", 18).scaled_integer == 0

    def test_zero_decimals(self):
        assert scale_supply("42", 0).scaled_integer == 42

    def test_max_decimals(self):
        assert scale_supply("3", 255).scaled_integer == 3 * 10**255

    @pytest.mark.parametrize("raw", ["abc", "", "1.5", "-1", "+1", " 1", "1e3", "12a", "٣"])
    def test_rejects_non_digit_strings(self, raw):
        with pytest.raises(InvalidAmount):
            scale_supply(raw, 18)

    @pytest.mark.parametrize("decimals", [-1, 256, True])
    def test_rejects_out_of_range_decimals(self, decimals):
        with pytest.raises(InvalidAmount):
            scale_supply("1", decimals)

    def test_amount_is_immutable(self):
        amount = scale_supply("5", 2)
        assert amount == SupplyAmount("5", 2, 500)
        with pytest.raises(AttributeError):
            amount.scaled_integer = 1
