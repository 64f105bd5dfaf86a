[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aigc-history"
version = "0.1.0"
description = "HTTP service that stores branching AI conversation histories with lineage, branches, forks and shares in SQLite."
requires-python = ">=3.10"
dependencies = [
    "flask",
]
keywords = ["conversation", "history", "lineage", "branching", "fork", "http", "api", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Database",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
aigc-history = "aigc_history.app:main"

[tool.hatch.build.targets.wheel]
packages = ["aigc_history"]

[tool.hatch.build.targets.sdist]
include = ["aigc_history", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
