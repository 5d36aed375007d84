[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tradekit"
version = "0.1.0"
description = "Building blocks for crypto futures and spot trading strategies, with simulated exchanges for backtesting."
requires-python = ">=3.11"
dependencies = [
    "tabulate",
    "sortedcontainers",
]
keywords = [
    "trading",
    "backtesting",
    "order book",
    "exchange",
    "futures",
    "spot",
    "strategy",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["tradekit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
