"""
Vector / DataPoint Tests
========================
"""

import dataclasses
import math
import pytest

from vector2d import DataPoint, Vector


class TestVectorArithmetic:

    def test_add_sub_neg(self):
        a = Vector(1.0, 2.0)
        b = Vector(3.0, -5.0)
        assert a + b == Vector(4.0, -3.0)
        assert a - b == Vector(-2.0, 7.0)
        assert -a == Vector(-1.0, -2.0)

    def test_scalar_mul_div(self):
        v = Vector(1.5, -2.0)
        assert v * 2 == Vector(3.0, -4.0)
        assert 2 * v == Vector(3.0, -4.0)
        assert v / 2 == Vector(0.75, -1.0)

    def test_vector_times_vector_is_not_supported(self):
        with pytest.raises(TypeError):
            Vector(1.0, 0.0) * Vector(0.0, 1.0)

    def test_immutable(self):
        v = Vector(1.0, 1.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            v.x = 2.0

    def test_unpacking(self):
        x, y = Vector(3.0, 4.0)
        assert (x, y) == (3.0, 4.0)


class TestVectorGeometry:

    def test_dot_and_length(self):
        assert Vector(1.0, 2.0).dot(Vector(3.0, 4.0)) == 11.0
        assert Vector(3.0, 4.0).length() == 5.0
        assert Vector(0.0, 0.0).distance(Vector(3.0, 4.0)) == 5.0

    def test_normalize(self):
        n = Vector(3.0, 4.0).normalize()
        assert n.length() == pytest.approx(1.0)
        assert n.x == pytest.approx(0.6)
        assert n.y == pytest.approx(0.8)

    def test_normalize_zero_raises(self):
        with pytest.raises(ValueError):
            Vector(0.0, 0.0).normalize()

    def test_perpendicular(self):
        v = Vector(2.0, 7.0)
        p = v.perpendicular()
        assert p == Vector(-7.0, 2.0)
        assert v.dot(p) == 0.0
        assert p.length() == v.length()

    @pytest.mark.parametrize("angle", [0.0, math.pi / 8, math.pi / 2, 3.0, -1.0])
    def test_polar(self, angle):
        v = Vector.polar(16.0, angle)
        assert v.length() == pytest.approx(16.0)
        assert math.atan2(v.y, v.x) == pytest.approx(math.atan2(math.sin(angle), math.cos(angle)))

    def test_polar_zero_angle_is_exact(self):
        assert Vector.polar(16.0, 0.0) == Vector(16.0, 0.0)


class TestDataPoint:

    def test_accessors(self):
        dp = DataPoint(Vector(1.0, 2.0), "arm")
        assert (dp.x, dp.y, dp.data) == (1.0, 2.0, "arm")
        assert Vector(1.0, 2.0).with_data("arm") == dp

    def test_polar_with_data(self):
        dp = Vector.polar(2.0, math.pi / 2).with_data(7)
        assert dp.x == pytest.approx(0.0, abs=1e-12)
        assert dp.y == pytest.approx(2.0)
        assert dp.data == 7

    def test_map_changes_only_payload(self):
        dp = DataPoint(Vector(4.0, -1.0), 3)
        mapped = dp.map(lambda d: d * 10)
        assert mapped.point is dp.point
        assert mapped.data == 30
        assert dp.data == 3
