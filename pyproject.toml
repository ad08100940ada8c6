[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "exastitch"
version = "0.1.0"
description = "Adaptive-mesh-refinement volume models, active brick regions and CPU sampling of AMR scalar fields"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["amr", "volume rendering", "bricks", "scientific visualization", "interpolation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Visualization",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["exastitch"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
