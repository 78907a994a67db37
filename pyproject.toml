[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "quadpress"
version = "0.1.0"
description = "Quadtree image compression with selectable error metrics and animated GIF output"
requires-python = ">=3.10"
dependencies = [
    "pillow",
]
keywords = ["quadtree", "image", "compression", "gif", "variance", "entropy"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
quadpress = "quadpress.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["quadpress"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
