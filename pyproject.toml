[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slotdb"
version = "0.1.0"
description = "A small page-based record store with a catalog, in-memory indexes and a minimal SQL shell"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "storage", "slotted-page", "sql", "records", "index"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
slotdb = "slotdb.query:main"

[tool.hatch.build.targets.wheel]
packages = ["slotdb"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
