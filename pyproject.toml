[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "invaders8080"
version = "0.1.0"
description = "An Intel 8080 disassembler and a partial 8080 CPU emulator aimed at the Space Invaders arcade ROM"
requires-python = ">=3.10"
dependencies = []
keywords = ["8080", "intel", "emulator", "disassembler", "space invaders", "arcade"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Environment :: Console",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Emulators",
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
invaders8080-disasm = "invaders8080.disassembler:main"
invaders8080-run = "invaders8080.emulator:main"

[tool.hatch.build.targets.wheel]
packages = ["invaders8080"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
