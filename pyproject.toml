[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "streamkit"
version = "0.1.0"
description = "Message-stream building blocks: a JSON codec, functional configuration options, error collectors and thread-based concurrency utilities."
requires-python = ">=3.10"
dependencies = []
keywords = ["messaging", "codec", "configuration", "worker-pool", "queue", "concurrency", "context"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["streamkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
