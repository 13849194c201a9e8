[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "photoframe"
version = "0.1.0"
description = "Fullscreen digital photo frame: watches a photo library, shuffles it and cross-fades through matted images."
requires-python = ">=3.10"
keywords = ["photo frame", "slideshow", "images", "matting", "viewer"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: X11 Applications",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Viewers",
]
dependencies = [
    "pyyaml",
    "pillow",
    "numpy",
    "watchdog",
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
photoframe = "photoframe.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["photoframe"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
