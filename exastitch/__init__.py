"""AMR volume models, active brick regions and CPU sampling of scalar fields."""

__version__ = "0.1.0"

__all__ = [
    "model",
    "amr_cell_model",
    "sampler",
    "abrs",
    "exa_brick_model",
    "exa_brick_sampler",
    "brick_majorants",
    "cpu_sampler",
]