[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "frostsig"
version = "0.0.1"
description = "Threshold Schnorr signatures over Ed25519 using the FROST protocol, with Nano block signing."
requires-python = ">=3.11"
keywords = ["frost", "threshold-signature", "schnorr", "ed25519", "cryptography", "nano"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "httpx",
    "python-dotenv",
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "respx",
]

[project.scripts]
frostsig = "frostsig.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["frostsig"]

[tool.hatch.build.targets.sdist]
include = ["frostsig", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
