# exastitch

Data models and CPU-side sampling for adaptive-mesh-refinement (AMR) scalar
volumes: loading cells and bricks from raw binary files, partitioning space
into active brick regions, and reconstructing scalar values at arbitrary points.

## Modules

- `exastitch.model`: geometry types `Box3f`, `Range1f` and `Affine3f` (composed
  with the `@` operator), and the `Model` base class. A model holds
  `cell_bounds`, `value_range` and a `voxel_space_transform`.
  `Model.set_voxel_space_transform(remap_from, remap_to)` sets that transform,
  and `Model.get_bounds()` returns the cell bounds mapped to world space. When
  `Model.init_mirror_exajet()` has been called, the bounds also include the
  cells mirrored about the plane `y = cell_bounds.upper.y`.
  `Model.set_num_grid_cells(dims)` records macro-cell grid dimensions and raises
  `RuntimeError` if they were already set.
- `exastitch.amr_cell_model`: `AMRCell` and
  `AMRCellModel.load(cell_file_name, scalar_file_name)`, which reads raw
  little-endian files of cells (three `int32` positions and an `int32` level
  each) and `float32` scalars. Missing files give empty data.
  `AMRCellModel.mem_stats()` returns the byte sizes of both arrays.
- `exastitch.sampler`: the `Sample` and `SpatialDomain` result types, a `Ray`,
  and `box_test(ray, box)`, which returns the `(t0, t1)` interval where the ray
  overlaps the box, or `None`.
- `exastitch.abrs`: `ExaBrick` (a block of same-level cells) and the active
  brick regions `ABR` / `ABRs`. `ABRs.build_from(bricks, scalars)` splits space
  at brick-domain planes into regions. Each region records the bricks that
  overlap it, the value range of the cells that reach it, and the finest cell
  width among those bricks. Build statistics are kept in `ABRs.stats`
  (`BuildStats`).
- `exastitch.exa_brick_model`: `ExaBrickModel.load(brick_file_name, scalar_file_name)`
  reads a brick file (size, lower corner, level, then one cell id per cell, all
  `int32`) and a `float32` scalar file. It raises `ValueError` on negative or
  out-of-range cell ids. If the brick file is missing, the model comes back
  empty. `ExaBrickModel.from_bricks(bricks, scalars)` builds a model from data
  already in brick order. Both build the regions, the global bounds and the
  value range. When the class-level `traversal_mode` (`TraversalMode`) or
  `sampler_mode` (`SamplerMode`) calls for it, they also build per-brick
  adjacency lists. `mem_stats()` reports sizes in bytes.
- `exastitch.exa_brick_sampler`: `get_scalar` and `add_basis_functions`, the
  tent-basis interpolation that adds one brick's contribution at a point.
- `exastitch.brick_majorants`: `compute_brick_value_ranges(bricks, scalars, adjacent_bricks)`
  gives each brick a value range that also takes in the neighbouring cells whose
  support reaches it. `majorant_source(traversal_mode)` tells which structure
  and which primitives supply the majorants for a traversal mode; an unknown
  mode raises `ValueError`.
- `exastitch.cpu_sampler`: `ExaBrickSamplerCPU`. After `build(model)`,
  `find_region(pos)` returns the index of the region containing a point, and
  `sample(pos)` returns a `Sample` holding the interpolated value. Outside every
  region the sample has `prim_id == -1`.

## Example

```python
from exastitch.abrs import ExaBrick
from exastitch.exa_brick_model import ExaBrickModel
from exastitch.cpu_sampler import ExaBrickSamplerCPU

bricks = [ExaBrick(lower=(0, 0, 0), size=(2, 2, 2), level=0, begin=0)]
scalars = [float(i) for i in range(8)]

model = ExaBrickModel.from_bricks(bricks, scalars)
print(model.cell_bounds, model.value_range)

sampler = ExaBrickSamplerCPU()
sampler.build(model)
print(sampler.sample((1.0, 1.0, 1.0)).value)
```

## What it does not do

This is a data and sampling library only. It does not render images, has no
viewer or command-line program, and does not build GPU acceleration
structures. It has no kd-tree over bricks and does not build the macro-cell
grid: `set_num_grid_cells` only records the dimensions. Unstructured or
stitched element meshes are not supported, only AMR cells and bricks.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```