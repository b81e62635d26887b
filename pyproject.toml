[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "khstate"
version = "0.1.0"
description = "Read and write Terraform state in local files, over HTTP and in Terraform Cloud, scaffold Terraform projects and run a small state receiver"
requires-python = ">=3.10"
keywords = ["terraform", "state", "tfstate", "terraform-cloud", "http-backend", "scaffold"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
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
dependencies = [
    "requests>=2.28",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
kh = "khstate.cli:main"
kh-receiver = "khstate.receiver:main"

[tool.hatch.build.targets.wheel]
packages = ["khstate"]

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
