[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "neutrino-calendar"
version = "0.2.0"
description = "Calendar service: reminders, task lists and tasks over a JSON HTTP API backed by SQLite"
requires-python = ">=3.10"
keywords = ["calendar", "reminders", "tasks", "todo", "scheduling", "flask", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Office/Business :: Scheduling",
]
dependencies = [
    "flask>=2.2",
    "pyjwt>=2.4",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "pyjwt>=2.4",
]

[project.scripts]
neutrino-calendar = "neutrino_calendar.app:main"

[tool.hatch.build.targets.wheel]
packages = ["neutrino_calendar"]

[tool.hatch.build.targets.sdist]
include = ["neutrino_calendar", "tests"]

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
