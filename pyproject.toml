[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kratix-cli"
version = "0.1.0"
description = "Tools for updating Kratix Promises and running Promise pipeline stages"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "kratix",
    "kubernetes",
    "promise",
    "crd",
    "terraform",
    "helm",
    "crossplane",
    "platform-engineering",
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
    "Topic :: Software Development :: Code Generators",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
kratix = "kratix_cli.cli:main"
kratix-operator-stage = "kratix_cli.object_stage:operator_main"
kratix-crossplane-stage = "kratix_cli.object_stage:crossplane_main"
kratix-terraform-stage = "kratix_cli.terraform_stage:main"

[tool.hatch.build.targets.wheel]
packages = ["kratix_cli"]

[tool.hatch.build.targets.sdist]
include = [
    "kratix_cli",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
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
