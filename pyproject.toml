[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "pizerodash"
version = "0.1.0"
description = "Dashboard instruments and Pico-backed latched data sources for a Pi Zero car dash."
requires-python = ">=3.10"
dependencies = []
keywords = ["dashboard", "instrument", "raspberry-pi", "pico", "spi", "gpio", "automotive"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pizerodash = "pizerodash.cli:main"

[tool.setuptools.packages.find]
include = ["pizerodash*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
