#!/usr/bin/env python3
"""
Setup configuration for MeloMo
Mood-based playlist generation for Apple Music, Spotify and YouTube Music
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "click>=8.1.7",
    "pyyaml>=6.0.1",
    "colorama>=0.4.6",
    "python-dotenv>=1.0.0",
    "aiohttp>=3.9.1",
    "asyncio-throttle>=1.0.2",
]

setup(
    name="melomo",
    version="1.0.0",
    author="MeloMo Team",
    description="Pick a mood, get a playlist: Apple Music playback or Spotify / YouTube Music handoff",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
    ],
    python_requires=">=3.8",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-asyncio>=0.21.1",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "melomo=melomo.main:cli",
        ],
    },
    include_package_data=True,
    package_data={
        "melomo": ["moods/*.yaml"],
    },
    keywords="music mood playlist apple-music spotify youtube-music cli",
)
