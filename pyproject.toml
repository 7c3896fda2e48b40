[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vcs2600"
version = "0.1.0"
description = "An Atari 2600 emulator core: 6502 CPU, TIA video chip and console memory map"
requires-python = ">=3.10"
dependencies = []
keywords = ["atari", "2600", "6502", "emulator", "tia", "retro"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
vcs2600-demo = "vcs2600.demo:main"

[tool.hatch.build.targets.wheel]
packages = ["vcs2600"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
