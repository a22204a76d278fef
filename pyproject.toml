[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cosikit"
version = "0.1.0"
description = "Building blocks for an object-storage provisioning driver: keyed locks, logging handlers, version registration in config maps and IAM-style XML response handling."
requires-python = ">=3.10"
dependencies = []
keywords = ["object-storage", "cosi", "iam", "logging", "locks", "config-map"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cosikit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
