"""
Classes and functions that provide general utility.
"""
from decimal import Decimal
from math import sqrt
from numbers import Real
from typing import TypeVar

__all__ = [
    "clamp",
    "linear_map",
    "curve_value",
    "interpolate",
]

T = TypeVar("T", int, float, Real, Decimal)
CURVE_EPSILON = 1e-9


def clamp(value: T, low_bound: T | None = None, high_bound: T | None = None) -> T:
    """
    Clamp a value to a range.

    If a bound is set to `None`, then the value will not be clamped on that side.

    :param value: The value to clamp.
    :param low_bound: The lower value to clamp to. If `None`, the low side is unbounded.
    :param high_bound: The higher value to clamp to. If `None`, the high side is unbounded.
    :returns: The clamped value.
    """
    if low_bound is not None and high_bound is not None and low_bound > high_bound:
        raise ValueError("low bound cannot be larger than high bound")
    if low_bound is not None and value < low_bound:
        return low_bound
    if high_bound is not None and value > high_bound:
        return high_bound
    return value


def linear_map(value: float, *, domain: tuple[float, float] = (0, 1), range: tuple[float, float] = (0, 1)) -> float:
    """
    Linearly map an interval into another interval.

    :param value: The input value. This is assumed to be within the ``domain`` interval.
    :param domain: The origin range.
    :param range: The target range.
    :returns: The resulting value after translating and scaling the origin range to match the target range.
    """
    dl, dh = domain
    rl, rh = range
    return (value - dl) / (dh - dl) * (rh - rl) + rl


def curve_value(a: float, b: float, x: float) -> float:
    """
    Evaluate a laser easing curve.

    The curve is the quadratic Bezier curve from (0, 0) to (1, 1) with (``a``, ``b``) as its control point. Setting
    both parameters to 0.5 results in a straight line.

    :param a: Horizontal (time) position of the control point, in [0, 1].
    :param b: Vertical (value) position of the control point, in [0, 1].
    :param x: A value in [0, 1] at which the curve is evaluated.
    :returns: The curve's value at ``x``, in [0, 1].
    """
    x = clamp(x, 0.0, 1.0)
    # Solve x(t) = 2t(1 - t)a + t^2 for t
    quad = 1 - 2 * a
    if abs(quad) < CURVE_EPSILON:
        t = x
    else:
        t = (-a + sqrt(max(a * a + quad * x, 0.0))) / quad
    t = clamp(t, 0.0, 1.0)
    return 2 * t * (1 - t) * b + t * t


def interpolate(
    value: float,
    initial_value: float,
    final_value: float,
    curve: tuple[float, float] | None = None,
) -> float:
    """
    Interpolates a point between two values, optionally following a laser easing curve.

    :param value: A value in [0.0, 1.0] at which the interpolation function is evaluated.
    :param initial_value: The initial value of the curve.
    :param final_value: The final value of the curve.
    :param curve: The (a, b) control point of the curve. If `None`, the interpolation is linear.
    :returns: The interpolated value, which is in the interval [``initial_value``, ``final_value``].
    """
    if value <= 0:
        return initial_value
    elif value >= 1:
        return final_value

    if curve is not None:
        value = curve_value(*curve, value)

    return initial_value + value * (final_value - initial_value)
