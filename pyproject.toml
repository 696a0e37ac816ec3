[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "connectkit"
version = "0.1.0"
description = "Building blocks for Connect, gRPC and gRPC-Web style RPC services: headers, options, interceptors, protocol negotiation and handler-side streams."
requires-python = ">=3.10"
dependencies = []
keywords = ["rpc", "connect", "grpc", "grpc-web", "interceptors", "http"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["connectkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
