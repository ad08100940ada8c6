import pytest

from exastitch.model import Affine3f, Box3f, Model, Range1f


def test_default_box_is_empty_and_extend_by_points():
    box = Box3f()
    assert box.is_empty()
    box.extend((1, 2, 3)).extend((-1, 5, 0))
    assert box.lower == (-1.0, 2.0, 0.0)
    assert box.upper == (1.0, 5.0, 3.0)
    assert not box.is_empty()


def test_box_extend_by_box_and_span_center():
    box = Box3f((0, 0, 0), (1, 1, 1))
    box.extend(Box3f((2, -1, 0), (3, 0, 4)))
    assert box.lower == (0.0, -1.0, 0.0)
    assert box.upper == (3.0, 1.0, 4.0)
    span = box.span()
    assert span == tuple(u - l for l, u in zip(box.lower, box.upper))
    assert box.volume() == pytest.approx(span[0] * span[1] * span[2])
    center = box.center()
    assert all(box.lower[i] < center[i] < box.upper[i] for i in range(3))


def test_box_intersection_overlap_contains():
    a = Box3f((0, 0, 0), (2, 2, 2))
    b = Box3f((1, 1, 1), (3, 3, 3))
    inter = a.intersection(b)
    assert inter.lower == b.lower
    assert inter.upper == a.upper
    assert a.overlaps(b) and b.overlaps(a)
    assert a.contains((2, 2, 2))
    assert not a.contains((2.5, 1, 1))
    c = Box3f((5, 5, 5), (6, 6, 6))
    assert not a.overlaps(c)
    assert a.intersection(c).is_empty()


def test_range_extend():
    r = Range1f()
    assert r.is_empty()
    for v in (3.0, -2.0, 7.5):
        r.extend(v)
    assert (r.lower, r.upper) == (-2.0, 7.5)
    r.extend(Range1f(-10.0, 0.0))
    assert (r.lower, r.upper) == (-10.0, 7.5)


def test_affine_inverse_round_trip():
    xf = Affine3f.translate((1, 2, 3)) @ Affine3f.scale((2, 4, 0.5))
    point = (0.3, -1.2, 8.0)
    back = xf.inverse().transform_point(xf.transform_point(point))
    assert back == pytest.approx(point)


def test_affine_composition_order():
    t = Affine3f.translate((1, 0, 0))
    s = Affine3f.scale((2, 2, 2))
    p = (1, 1, 1)
    assert (t @ s).transform_point(p) == pytest.approx(t.transform_point(s.transform_point(p)))
    assert (s @ t).transform_point(p) == pytest.approx(s.transform_point(t.transform_point(p)))


def test_set_num_grid_cells_twice_raises():
    model = Model()
    model.set_num_grid_cells((4, 5, 6))
    assert model.grid_dims == (4, 5, 6)
    with pytest.raises(RuntimeError):
        model.set_num_grid_cells((1, 1, 1))


def test_voxel_space_transform_maps_bounds_to_target():
    voxel = Box3f((0, 0, 0), (64, 32, 16))
    world = Box3f((-1, -1, -1), (1, 3, 5))
    model = Model(cell_bounds=Box3f(voxel.lower, voxel.upper))
    model.set_voxel_space_transform(voxel, world)
    bounds = model.get_bounds()
    assert bounds.lower == pytest.approx(world.lower)
    assert bounds.upper == pytest.approx(world.upper)


def test_default_transform_is_identity_for_bounds():
    model = Model(cell_bounds=Box3f((1, 2, 3), (4, 5, 6)))
    bounds = model.get_bounds()
    assert bounds.lower == pytest.approx((1, 2, 3))
    assert bounds.upper == pytest.approx((4, 5, 6))


def test_mirror_reflects_about_upper_y():
    model = Model(cell_bounds=Box3f((0, 0, 0), (1, 2, 3)))
    model.init_mirror_exajet()
    p = (0.5, 0.5, 1.0)
    mirrored = model.mirror_transform.transform_point(p)
    assert mirrored[0] == pytest.approx(p[0])
    assert mirrored[2] == pytest.approx(p[2])
    assert model.mirror_transform.transform_point(mirrored) == pytest.approx(p)
    bounds = model.get_bounds()
    assert bounds.lower == pytest.approx((0, 0, 0))
    assert bounds.upper == pytest.approx((1, 4, 3))