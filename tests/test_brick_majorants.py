import pytest

from exastitch.abrs import ExaBrick
from exastitch.brick_majorants import (
    AccelKind,
    OpacityOwner,
    compute_brick_value_ranges,
    majorant_source,
)
from exastitch.exa_brick_model import TraversalMode


def _pair(second_lower):
    a = ExaBrick(lower=(0, 0, 0), size=(2, 1, 1), level=0, begin=0)
    b = ExaBrick(lower=second_lower, size=(2, 1, 1), level=0, begin=2)
    return [a, b]


def test_single_brick_range_is_its_own_min_max():
    brick = ExaBrick(lower=(0, 0, 0), size=(2, 2, 1), level=0, begin=0)
    ranges = compute_brick_value_ranges([brick], [3.0, -1.0, 7.0, 2.0], [[]])
    assert (ranges[0].lower, ranges[0].upper) == (-1.0, 7.0)


def test_overlapping_neighbours_share_values():
    bricks = _pair((2, 0, 0))
    ranges = compute_brick_value_ranges(bricks, [1.0, 2.0, 10.0, 20.0], [[1], [0]])
    assert (ranges[0].lower, ranges[0].upper) == (1.0, 20.0)
    assert (ranges[1].lower, ranges[1].upper) == (1.0, 20.0)


def test_distant_neighbours_keep_own_ranges():
    bricks = _pair((10, 0, 0))
    ranges = compute_brick_value_ranges(bricks, [1.0, 2.0, 10.0, 20.0], [[1], [0]])
    assert (ranges[0].lower, ranges[0].upper) == (1.0, 2.0)
    assert (ranges[1].lower, ranges[1].upper) == (10.0, 20.0)


def test_without_adjacency_no_splatting():
    bricks = _pair((2, 0, 0))
    ranges = compute_brick_value_ranges(bricks, [1.0, 2.0, 10.0, 20.0], [[], []])
    assert (ranges[0].lower, ranges[0].upper) == (1.0, 2.0)
    assert (ranges[1].lower, ranges[1].upper) == (10.0, 20.0)


def test_range_always_contains_own_values():
    bricks = _pair((2, 0, 0))
    values = [4.0, -3.0, 8.0, 0.5]
    ranges = compute_brick_value_ranges(bricks, values, [[1], [0]])
    for brick, rng in zip(bricks, ranges):
        own = values[brick.begin : brick.begin + brick.num_cells()]
        assert rng.lower <= min(own)
        assert rng.upper >= max(own)


def test_empty_input():
    assert compute_brick_value_ranges([], [], []) == []


def test_mismatched_adjacency_raises():
    bricks = _pair((2, 0, 0))
    with pytest.raises(ValueError):
        compute_brick_value_ranges(bricks, [1.0, 2.0, 3.0, 4.0], [[1]])


@pytest.mark.parametrize(
    "mode, accel, owner",
    [
        (TraversalMode.EXABRICK_ABR, AccelKind.BVH, OpacityOwner.REGIONS),
        (TraversalMode.MC_DDA, AccelKind.GRID, OpacityOwner.GRID),
        (TraversalMode.MC_BVH, AccelKind.BVH, OpacityOwner.GRID),
        (TraversalMode.EXABRICK_KDTREE, AccelKind.KDTREE, OpacityOwner.BRICKS),
        (TraversalMode.EXABRICK_BVH, AccelKind.BVH, OpacityOwner.BRICKS),
        (TraversalMode.EXABRICK_EXT_BVH, AccelKind.BVH, OpacityOwner.BRICKS),
    ],
)
def test_majorant_source_mapping(mode, accel, owner):
    source = majorant_source(mode)
    assert source.accel is accel
    assert source.max_opacities is owner


def test_majorant_source_accepts_int():
    assert majorant_source(1) == majorant_source(TraversalMode.MC_DDA)


def test_bvh_modes_use_distinct_structures():
    names = {
        majorant_source(m).structure
        for m in (
            TraversalMode.EXABRICK_ABR,
            TraversalMode.MC_BVH,
            TraversalMode.EXABRICK_BVH,
            TraversalMode.EXABRICK_EXT_BVH,
        )
    }
    assert len(names) == 4


def test_invalid_traversal_mode_raises():
    with pytest.raises(ValueError, match="wrong traversal mode"):
        majorant_source(42)