[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "latticekit"
version = "0.1.0"
description = "Client-side helpers for a lattice blockchain node: connection configuration, retry strategies, receipt polling and dynamic protobuf serialization."
requires-python = ">=3.10"
keywords = ["blockchain", "lattice", "protobuf", "retry", "receipt"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "protobuf",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["latticekit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
