[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kava_rosetta"
version = "0.1.0"
description = "Rosetta-style operation mapping, address derivation and node RPC queries for the Kava blockchain"
requires-python = ">=3.10"
keywords = ["kava", "rosetta", "cosmos", "blockchain", "bech32", "secp256k1", "tendermint"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "requests>=2.28",
    "cryptography>=41",
    "pycryptodome>=3.18",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "responses>=0.23",
]

[tool.hatch.build.targets.wheel]
packages = ["kava_rosetta"]

[tool.hatch.build.targets.sdist]
include = ["kava_rosetta", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
