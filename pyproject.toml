[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "laptimer"
version = "0.1.0"
description = "GPS lap timer logic: start/finish line crossing detection, lap timing states and text display pages"
requires-python = ">=3.10"
dependencies = []
keywords = ["gps", "lap timer", "nmea", "motorsport", "state machine"]
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
    "Topic :: Scientific/Engineering :: GIS",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["laptimer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
