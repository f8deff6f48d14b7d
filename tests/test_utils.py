import pytest

from ksoneditor.utils import clamp, curve_value, interpolate, linear_map


def test_clamp():
    assert clamp(5, 0, 10) == 5
    assert clamp(-5, 0, 10) == 0
    assert clamp(15, 0, 10) == 10
    assert clamp(15, low_bound=0) == 15
    with pytest.raises(ValueError):
        clamp(0, 10, 0)


def test_linear_map():
    assert linear_map(5, domain=(0, 10), range=(0, 1)) == 0.5
    assert linear_map(0.25, range=(100, 200)) == 125


@pytest.mark.parametrize("a, b", [(0.5, 0.5), (0.0, 1.0), (1.0, 0.0), (0.2, 0.9)])
def test_curve_value_endpoints(a, b):
    assert curve_value(a, b, 0.0) == pytest.approx(0.0)
    assert curve_value(a, b, 1.0) == pytest.approx(1.0)


def test_curve_value_shapes():
    assert curve_value(0.5, 0.5, 0.3) == pytest.approx(0.3)
    # Control point in the top left corner eases out, bottom right eases in
    assert curve_value(0.0, 1.0, 0.5) > 0.5
    assert curve_value(1.0, 0.0, 0.5) < 0.5


def test_interpolate():
    assert interpolate(0.0, 2.0, 4.0) == 2.0
    assert interpolate(1.0, 2.0, 4.0) == 4.0
    assert interpolate(0.5, 2.0, 4.0) == pytest.approx(3.0)
    assert interpolate(0.5, 1.0, 0.0, (0.5, 0.5)) == pytest.approx(0.5)
