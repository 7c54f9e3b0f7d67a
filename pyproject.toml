[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ptrchase"
version = "0.1.0"
description = "Memory latency and bandwidth benchmark that chases pointer chains across cache lines and pages"
requires-python = ">=3.10"
dependencies = []
keywords = ["benchmark", "memory", "latency", "bandwidth", "pointer-chasing", "pcg32"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ptrchase = "ptrchase.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ptrchase"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
