[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fountainstore"
version = "0.1.0"
description = "UDP data server that stores and serves blobs using LT fountain codes"
requires-python = ">=3.10"
dependencies = []
keywords = ["fountain codes", "LT codes", "robust soliton", "erasure coding", "udp", "storage"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
fountainstore-push = "fountainstore.push_server:main"
fountainstore-pull = "fountainstore.pull_server:main"

[tool.hatch.build.targets.wheel]
packages = ["fountainstore"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
