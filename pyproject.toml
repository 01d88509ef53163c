[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "broval"
version = "0.1.0"
description = "Typed values, vectors, records and tables with the binary serialization used by Bro peer communication"
requires-python = ">=3.10"
dependencies = []
keywords = ["bro", "zeek", "serialization", "network", "events"]
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
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["broval"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
