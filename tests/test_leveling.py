import pytest

from server.src.modules.leveling import MAX_LEVEL, apply_experience, required_exp


def test_required_exp_table():
    assert [required_exp(lvl) for lvl in range(1, MAX_LEVEL)] == [100, 120, 144, 173, 208, 249, 299]


def test_required_exp_treats_low_levels_as_one():
    assert required_exp(0) == 100
    assert required_exp(-3) == 100


def test_exact_threshold_rolls_over():
    assert apply_experience(1, 0, 100) == (2, 0)


def test_partial_progress():
    assert apply_experience(1, 50, 30) == (1, 80)


def test_multi_level_rollover():
    assert apply_experience(1, 0, 250) == (3, 30)


def test_rollover_counts_existing_progress():
    # 100 - 90 = 10 to level 2, then 15 of 120
    assert apply_experience(1, 90, 25) == (2, 15)


def test_zero_delta_is_noop():
    assert apply_experience(4, 12, 0) == (4, 12)


@pytest.mark.parametrize("exp", [0, 5, 250])
@pytest.mark.parametrize("delta", [1, 100, 10_000])
def test_positive_delta_at_cap_is_ignored(exp, delta):
    assert apply_experience(MAX_LEVEL, exp, delta) == (MAX_LEVEL, exp)


def test_negative_delta_at_cap_floors():
    assert apply_experience(MAX_LEVEL, 40, -10) == (MAX_LEVEL, 30)
    assert apply_experience(MAX_LEVEL, 40, -100) == (MAX_LEVEL, 0)


def test_reaching_cap_discards_leftover():
    total = sum(required_exp(lvl) for lvl in range(1, MAX_LEVEL))
    assert apply_experience(1, 0, total) == (MAX_LEVEL, 0)
    assert apply_experience(1, 0, total + 500) == (MAX_LEVEL, 0)
    assert apply_experience(1, 0, total - 1) == (MAX_LEVEL - 1, required_exp(MAX_LEVEL - 1) - 1)


def test_negative_experience_floors_at_zero():
    assert apply_experience(2, 10, -50) == (2, 0)
    assert apply_experience(3, 40, -15) == (3, 25)


def test_level_never_decreases():
    for delta in (-1, -100, -10_000):
        level, _ = apply_experience(5, 3, delta)
        assert level == 5


def test_stored_progress_over_threshold_levels_up_without_consuming():
    assert apply_experience(1, 130, 0) == (2, 0)
    assert apply_experience(1, 130, 20) == (2, 20)


def test_bad_stored_values_are_normalized():
    assert apply_experience(0, -5, 50) == (1, 50)
