"""Setup script for the Symbio marketplace core."""

from setuptools import setup, find_packages
from pathlib import Path

readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text() if readme_path.exists() else ""

setup(
    name="symbio",
    version="0.1.0",
    description="Freelance marketplace core: proposals, project lifecycle, milestones, and credibility scoring",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "jsonschema>=4.17.0",
        "click>=8.1.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "api": [
            "flask>=2.3.0",
        ],
        "dev": [
            "pytest>=7.4.0",
            "flask>=2.3.0",
            "black>=23.0.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "symbio=symbio.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business",
    ],
    keywords=[
        "freelance",
        "marketplace",
        "proposals",
        "milestones",
    ],
)
