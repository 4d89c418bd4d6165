[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minix"
version = "0.1.0"
description = "In-memory model of a cid NFT registry and linear-price cid auctions, with weights and JSON-RPC queries"
requires-python = ">=3.10"
dependencies = []
keywords = ["nft", "auction", "registry", "dutch-auction", "blockchain", "simulation", "json-rpc"]
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
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["minix"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
