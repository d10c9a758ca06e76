[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lore"
version = "0.9.0"
description = "Find, search and summarise Claude Code session transcripts stored as JSONL files."
requires-python = ">=3.10"
dependencies = []
keywords = ["claude", "transcripts", "jsonl", "sessions", "search", "heatmap"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lore"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
