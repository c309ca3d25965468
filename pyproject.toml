[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rdbms"
version = "0.4.0"
description = "Relational database building blocks: SQL statement splitting, expression evaluation, catalog files, result printing, a REPL loop and a JSON-over-TCP server"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "database",
    "rdbms",
    "sql",
    "expressions",
    "repl",
    "catalog",
]
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
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["rdbms"]

[tool.hatch.build.targets.sdist]
include = [
    "rdbms",
    "tests",
    "README.md",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
check_untyped_defs = true
