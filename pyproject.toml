[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "una"
version = "1.0.0"
description = "Universal Node API: create and pay Lightning invoices and read node information through one async interface"
requires-python = ">=3.10"
keywords = ["lightning", "bitcoin", "lnd", "eclair", "cln", "invoice", "payments"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Framework :: Pydantic :: 2",
    "Topic :: Office/Business :: Financial",
    "Typing :: Typed",
]
dependencies = [
    "httpx",
    "pydantic>=2",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "respx",
]

[project.scripts]
una-cli = "una.cli:main"
una-schemas = "una.schemas:main"

[tool.hatch.build.targets.wheel]
packages = ["una"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
