import pytest

from examcore.utils.grade_scale import FAILING_LETTER, is_passing, letter_grade, percentage_of


@pytest.mark.parametrize("percentage,expected", [
    (100.0, "A"),
    (90.0, "A"),
    (89.999, "B"),
    (80.0, "B"),
    (79.99, "C"),
    (70.0, "C"),
    (60.0, "D"),
    (50.0, "E"),
    (49.99, "F"),
    (0.0, "F"),
])
def test_letter_grade_bands(percentage, expected):
    assert letter_grade(percentage) == expected


def test_letter_grade_is_monotonic():
    order = ["F", "E", "D", "C", "B", "A"]
    previous = order.index(letter_grade(0))
    for tenth in range(0, 1001):
        current = order.index(letter_grade(tenth / 10))
        assert current >= previous
        previous = current
    assert FAILING_LETTER == "F"


def test_percentage_of_is_exact_for_whole_scores():
    assert percentage_of(18, 20) == 90.0
    assert percentage_of(57, 100) == 57.0
    assert percentage_of(0, 20) == 0.0


def test_percentage_of_rejects_non_positive_max():
    with pytest.raises(ValueError):
        percentage_of(5, 0)
    with pytest.raises(ValueError):
        percentage_of(5, -10)


def test_pass_rule_uses_absolute_points():
    assert is_passing(10, 10)
    assert is_passing(10.5, 10)
    assert not is_passing(9.99, 10)
    # 50% of 20 passes a 10-point threshold even though it is a low letter grade
    assert is_passing(10, 10) and letter_grade(percentage_of(10, 20)) == "E"
