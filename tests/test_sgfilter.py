import pytest

from slamkit.sgfilter import SGFilter, pow_fast


def test_pow_fast_zero_and_one():
    assert pow_fast(7.5, 0) == 1.0
    assert pow_fast(7.5, 1) == 7.5


@pytest.mark.parametrize("x", [0.5, -1.25, 2.0])
@pytest.mark.parametrize("a,b", [(1, 2), (3, 4), (2, 0)])
def test_pow_fast_exponent_addition(x, a, b):
    assert pow_fast(x, a + b) == pytest.approx(pow_fast(x, a) * pow_fast(x, b))


def test_pow_fast_negative_exponent_rejected():
    with pytest.raises(ValueError):
        pow_fast(2.0, -1)


def test_order_too_high_rejected():
    with pytest.raises(ValueError):
        SGFilter(5, 5)


def test_warm_up_returns_none_until_window_is_filled():
    filt = SGFilter(1, 5)
    results = [filt.update(0.1 * k, float(k)) for k in range(8)]
    assert results[:6] == [None] * 6
    assert results[6] is not None
    assert results[7] is not None


def test_linear_signal_is_reproduced():
    filt = SGFilter(1, 5)
    out = None
    for k in range(20):
        t = 0.1 * k
        out = filt.update(t, 2.0 * t + 1.0)
    t_last = 0.1 * 19
    assert out[0] == pytest.approx(2.0 * t_last + 1.0)
    assert out[1] == pytest.approx(2.0)
    assert filt.y_raw == pytest.approx(2.0 * t_last + 1.0)


def test_quadratic_signal_value_and_derivative():
    filt = SGFilter(2, 7)
    for k in range(30):
        t = 0.05 * k
        filt.update(t, t * t - 3.0 * t)
    t_last = 0.05 * 29
    assert filt.y == pytest.approx(t_last * t_last - 3.0 * t_last)
    assert filt.y_dot == pytest.approx(2.0 * t_last - 3.0)


def test_constant_signal_has_zero_derivative():
    filt = SGFilter(2, 6)
    for k in range(15):
        filt.update(float(k), 4.0)
    assert filt.y == pytest.approx(4.0)
    assert filt.y_dot == pytest.approx(0.0, abs=1e-9)