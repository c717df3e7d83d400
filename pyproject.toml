[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "addonmeta"
version = "0.1.0"
description = "Load, combine and check managed add-on metadata, image sets and operator bundles."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "addons",
    "operators",
    "olm",
    "kubernetes",
    "metadata",
    "validation",
    "rbac",
]
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
    "Topic :: Software Development :: Quality Assurance",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
mtcli = "addonmeta.main:main"

[tool.hatch.build.targets.wheel]
packages = ["addonmeta"]

[tool.hatch.build.targets.sdist]
include = [
    "addonmeta",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
