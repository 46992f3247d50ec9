[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sitecrawler"
version = "0.1.0"
description = "A single-site web crawler that honours robots.txt, extracts page text and stores it in MongoDB"
requires-python = ">=3.10"
keywords = ["crawler", "spider", "robots.txt", "mongodb", "search", "indexing"]
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
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
]
dependencies = [
    "requests",
    "pymongo",
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
sitecrawler = "sitecrawler.crawl:main"

[tool.hatch.build.targets.wheel]
packages = ["sitecrawler"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
