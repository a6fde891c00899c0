[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "geyser-probe"
version = "0.1.0"
description = "Probe a Geyser gRPC node to see whether it accepts more than 50 account pubkeys in one subscription"
requires-python = ">=3.10"
dependencies = [
    "grpcio",
]
keywords = ["grpc", "geyser", "solana", "subscription", "probe"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
geyser-probe = "geyser_probe.probe:main"

[tool.hatch.build.targets.wheel]
packages = ["geyser_probe"]

[tool.pytest.ini_options]
addopts = "-ra"
