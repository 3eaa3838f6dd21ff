[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rddkit"
version = "0.1.0"
description = "Building blocks for a small cluster computing engine: message framing, partition caching and cache tracking, shuffle buckets, local file partitioning, task executors and remote deployment."
requires-python = ">=3.11"
dependencies = []
keywords = [
    "distributed",
    "cluster",
    "shuffle",
    "executor",
    "cache",
    "partitioning",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rddkit = "rddkit.deploy:main"

[tool.hatch.build.targets.wheel]
packages = ["rddkit"]

[tool.hatch.build.targets.sdist]
include = ["rddkit", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
