[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zipfspath"
version = "0.1.0"
description = "ZIP entry path normalisation, ZIP time and glob helpers, and a ZIP header inspection tool"
requires-python = ">=3.10"
dependencies = []
keywords = ["zip", "archive", "path", "glob", "dos-time", "central-directory"]
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
    "Topic :: System :: Archiving :: Compression",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
zipfspath-info = "zipfspath.zipinfo:main"

[tool.hatch.build.targets.wheel]
packages = ["zipfspath"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
