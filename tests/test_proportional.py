from decimal import Decimal

from app.utils.proportional import allocation_ratio, percentage_of, present, split_proportionally, to_decimal


def test_split_keeps_proportions_and_hits_target():
    shares = split_proportionally([Decimal("180"), Decimal("60")], Decimal("228"))
    assert shares == [Decimal("171"), Decimal("57")]
    assert sum(shares) == Decimal("228")


def test_split_with_nothing_to_scale_returns_amounts_unchanged():
    assert split_proportionally([0, 0], 50) == [Decimal("0"), Decimal("0")]
    assert allocation_ratio(50, 0) == Decimal("1")


def test_split_of_single_line_takes_whole_total():
    assert split_proportionally([Decimal("99.99")], Decimal("12.5")) == [Decimal("12.5")]


def test_to_decimal_avoids_binary_float_noise():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(None) == Decimal("0")
    assert to_decimal("7.25") == Decimal("7.25")


def test_percentage_of():
    assert percentage_of(Decimal("180"), 5) == Decimal("9")
    assert percentage_of(200, Decimal("12.5")) == Decimal("25")


def test_present_rounds_to_one_decimal():
    assert present(Decimal("171")) == 171.0
    assert present(Decimal("33.3333")) == 33.3
    assert present(Decimal("0.06")) == 0.1


def test_present_rounds_ties_up():
    assert present(Decimal("171.25")) == 171.3
    assert present(Decimal("0.75")) == 0.8
    assert present("2.45") == 2.5
