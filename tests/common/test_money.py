import pytest

from workpulse.common.money import amount_in_words, round_half_up


@pytest.mark.parametrize("value,expected", [(2.5, 3), (3.5, 4), (-2.5, -3), (8522.727, 8523), (10.49, 10)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


@pytest.mark.parametrize(
    "amount,words",
    [
        (0, "Zero Only"),
        (15, "Fifteen Only"),
        (105, "One Hundred Five Only"),
        (132500, "One Lakh Thirty Two Thousand Five Hundred Only"),
        (25_000_000, "Two Crore Fifty Lakh Only"),
        (-1200, "Minus One Thousand Two Hundred Only"),
    ],
)
def test_amount_in_words(amount, words):
    assert amount_in_words(amount) == words
