[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "beamplan"
version = "0.1.0"
description = "Greedy satellite beam planning: assign ground users to satellite beams under visibility, capacity and color-separation rules, and check the resulting plans."
requires-python = ">=3.10"
dependencies = []
keywords = ["satellite", "beam", "planning", "assignment", "coverage"]
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
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
beamplan-check = "beamplan.checker:main"

[tool.hatch.build.targets.wheel]
packages = ["beamplan"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
