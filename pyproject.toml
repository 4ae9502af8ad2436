[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "molsim"
version = "0.1.0"
description = "Molecular simulation building blocks: geometry with gradients, periodic boundaries, Ewald k-space sums, histograms and intramolecular force fields"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "molecular simulation",
    "force field",
    "ewald",
    "dihedral",
    "periodic boundary conditions",
    "histogram",
    "chemistry",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Chemistry",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
molsim-geo = "molsim.geoprog:main"
molsim-hist = "molsim.histprog:main"

[tool.hatch.build.targets.wheel]
packages = ["molsim"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
