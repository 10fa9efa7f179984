[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "easykernel"
version = "0.1.0"
description = "Teaching-kernel building blocks: a simple block file system, signals, task management, synchronisation primitives and syscall types."
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "filesystem", "signals", "scheduler", "operating-system", "education"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: System :: Filesystems",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["easykernel"]

[tool.pytest.ini_options]
addopts = "-ra"
