import pytest

from exastitch.abrs import ExaBrick
from exastitch.cpu_sampler import ExaBrickSamplerCPU
from exastitch.exa_brick_model import ExaBrickModel
from exastitch.sampler import Sample


def _linear_model():
    brick = ExaBrick(lower=(0, 0, 0), size=(4, 1, 1), level=0, begin=0)
    # one value per cell, equal to the x coordinate of the cell centre
    return ExaBrickModel.from_bricks([brick], [0.5, 1.5, 2.5, 3.5])


def _built(model):
    sampler = ExaBrickSamplerCPU()
    assert sampler.build(model) is True
    return sampler


def test_constant_field_is_reproduced():
    brick = ExaBrick(lower=(0, 0, 0), size=(2, 2, 2), level=0, begin=0)
    model = ExaBrickModel.from_bricks([brick], [5.0] * 8)
    sampler = _built(model)
    result = sampler.sample((1.2, 0.7, 1.4))
    assert result.prim_id == 0
    assert result.cell_id == -1
    assert result.value == pytest.approx(5.0)


def test_linear_field_is_interpolated():
    sampler = _built(_linear_model())
    for x in (1.0, 1.75, 2.0, 3.25):
        assert sampler.sample((x, 0.5, 0.5)).value == pytest.approx(x)


def test_sample_at_cell_centre_returns_cell_value():
    sampler = _built(_linear_model())
    assert sampler.sample((2.5, 0.5, 0.5)).value == pytest.approx(2.5)


def test_outside_all_regions_is_a_miss():
    sampler = _built(_linear_model())
    assert sampler.sample((100.0, 0.5, 0.5)) == Sample(-1, -1, 0.0)
    assert sampler.find_region((100.0, 0.5, 0.5)) is None


def test_found_region_contains_point():
    brick_a = ExaBrick(lower=(0, 0, 0), size=(2, 2, 2), level=0, begin=0)
    brick_b = ExaBrick(lower=(2, 0, 0), size=(1, 1, 1), level=1, begin=8)
    model = ExaBrickModel.from_bricks([brick_a, brick_b], [1.0] * 8 + [3.0])
    sampler = _built(model)
    for pos in ((0.5, 0.5, 0.5), (2.5, 1.0, 0.2), (3.5, 1.5, 1.5)):
        region_id = sampler.find_region(pos)
        assert region_id is not None
        assert model.abrs.value[region_id].domain.contains(pos)


def test_mixed_levels_stay_within_value_range():
    brick_a = ExaBrick(lower=(0, 0, 0), size=(2, 2, 2), level=0, begin=0)
    brick_b = ExaBrick(lower=(2, 0, 0), size=(1, 1, 1), level=1, begin=8)
    model = ExaBrickModel.from_bricks([brick_a, brick_b], [1.0] * 8 + [3.0])
    sampler = _built(model)
    for x in (0.5, 1.5, 2.0, 2.5, 3.0, 3.5):
        result = sampler.sample((x, 1.0, 1.0))
        assert result.prim_id == 0
        assert model.value_range.lower - 1e-6 <= result.value <= model.value_range.upper + 1e-6


def test_unbuilt_sampler_raises():
    with pytest.raises(RuntimeError):
        ExaBrickSamplerCPU().sample((0.0, 0.0, 0.0))