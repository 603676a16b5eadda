[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pesvcs"
version = "0.1.0"
description = "A small content-addressed version control system with a staging area, commits and history."
requires-python = ">=3.10"
dependencies = []
keywords = ["vcs", "version-control", "content-addressable", "sha256", "commits"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Version Control",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pes = "pesvcs.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["pesvcs"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
