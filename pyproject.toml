[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "trusskit"
version = "0.1.0"
description = "Read gRPC service definitions from protobuf and generated Go code, including their HTTP annotations"
requires-python = ">=3.10"
dependencies = [
    "protobuf",
]
keywords = [
    "protobuf",
    "grpc",
    "code generation",
    "http annotations",
    "service definition",
]
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
    "Topic :: Software Development :: Code Generators",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["trusskit"]

[tool.hatch.build.targets.sdist]
include = [
    "trusskit",
    "tests",
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
