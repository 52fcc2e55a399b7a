[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "perfwatch"
version = "0.1.0"
description = "Sampling of CPU, memory, disk, network and GPU metrics from /proc and tool output, with adaptive compression and SQLite storage"
requires-python = ">=3.10"
dependencies = []
keywords = ["monitoring", "performance", "cpu", "memory", "sampling", "procfs", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["perfwatch"]

[tool.pytest.ini_options]
addopts = "-ra"
