[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tusbucket"
version = "0.1.0"
description = "Building blocks for keeping resumable tus uploads in S3 multipart uploads"
requires-python = ">=3.10"
dependencies = []
keywords = ["tus", "s3", "resumable", "upload", "multipart", "storage"]
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
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tusbucket"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
