[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "yarb"
version = "0.1.2"
description = "Roblox player bootstrapper: installs, updates, verifies and launches the player with FastFlags and file mods"
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = ["roblox", "bootstrapper", "launcher", "fastflags", "mods"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: Microsoft :: Windows",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
yarb = "yarb.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["yarb"]

[tool.pytest.ini_options]
addopts = "-ra"
