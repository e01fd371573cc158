[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "thsrbook"
version = "1.0.0"
description = "Command-line tool for booking Taiwan High Speed Rail tickets"
requires-python = ">=3.10"
keywords = ["thsr", "taiwan", "high-speed-rail", "booking", "tickets", "cli"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
]
dependencies = [
    "requests",
    "beautifulsoup4",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
thsrbook = "thsrbook.app:main"

[tool.hatch.build.targets.wheel]
packages = ["thsrbook"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
