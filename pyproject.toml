[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "integdev"
version = "0.1.0"
description = "Developer tooling for integration packages: CI compatibility checks, CODEOWNERS validation, coverage merging and beats module conversion helpers"
requires-python = ">=3.10"
keywords = [
    "integrations",
    "ci",
    "codeowners",
    "coverage",
    "kibana",
    "semver",
    "packaging",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "pyyaml>=6.0",
    "pillow>=10.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[tool.hatch.build.targets.wheel]
packages = ["integdev"]

[tool.hatch.build.targets.sdist]
include = ["integdev", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
