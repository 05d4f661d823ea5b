[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fundtransfer"
version = "0.1.0"
description = "Idempotent, deadlock-safe money transfers between accounts over a small HTTP API"
requires-python = ">=3.10"
keywords = ["banking", "transfer", "idempotency", "ledger", "payments"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: Flask",
    "Topic :: Office/Business :: Financial",
]
dependencies = [
    "sqlalchemy>=2.0",
    "flask>=2.3",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[project.scripts]
fundtransfer = "fundtransfer.server:main"

[tool.hatch.build.targets.wheel]
packages = ["fundtransfer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
strict = true
