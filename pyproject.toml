[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shcalendar"
version = "0.1.0"
description = "A small habit calendar web service: mark days per habit, stored in SQLite, served over WSGI."
requires-python = ">=3.10"
dependencies = []
keywords = ["habits", "calendar", "wsgi", "sqlite", "tracker"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Office/Business :: Scheduling",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
shcalendar = "shcalendar.server:main"

[tool.hatch.build.targets.wheel]
packages = ["shcalendar"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
