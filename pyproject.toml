[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lshbridge"
version = "0.1.0"
description = "Building blocks for a bridge between an LSH serial controller and Homie/MQTT: topology cache, command decoding, payloads and routing."
requires-python = ">=3.10"
dependencies = []
keywords = ["home-automation", "mqtt", "homie", "msgpack", "bridge", "lsh"]
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
    "Topic :: Home Automation",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lshbridge"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
