[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "crawlmodels"
version = "0.1.0"
description = "Crawl item trees and canonical URL handling for web archiving crawlers"
requires-python = ">=3.10"
keywords = ["crawler", "web archiving", "url", "idna", "crawl tree"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
]
dependencies = [
    "idna",
    "beautifulsoup4",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["crawlmodels"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
