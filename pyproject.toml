[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ferox"
version = "0.1.0"
description = "Building blocks for recursive web content discovery: response records, filters, fuzzy hashing, link extraction and wildcard heuristics"
requires-python = ">=3.10"
keywords = [
    "content-discovery",
    "web",
    "scanner",
    "wildcard",
    "filters",
    "fuzzy-hash",
    "link-extraction",
    "security",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Information Technology",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Security",
]
dependencies = [
    "requests>=2.28",
    "tqdm>=4.64",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[tool.hatch.build.targets.wheel]
packages = ["ferox"]

[tool.hatch.build.targets.sdist]
include = ["ferox", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP", "SIM"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
ignore_missing_imports = true
