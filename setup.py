"""
Alpha Finders Bot - Setup Configuration
TEA Protocol (Optimism) fresh-token discovery and contract risk analysis over Telegram
"""

from setuptools import setup, find_packages
import os

# Read the README file
long_description = ""
if os.path.exists("README.md"):
    with open("README.md", "r", encoding="utf-8") as fh:
        long_description = fh.read()

# Read requirements
def read_requirements(file):
    """Read requirements from file"""
    if os.path.exists(file):
        with open(file, 'r') as f:
            return [line.strip() for line in f if line.strip() and not line.startswith('#')]
    return []

setup(
    name="alphafinders-bot",
    version="1.0.0",
    author="Alpha Finders Team",
    description="Telegram bot for fresh-token discovery and contract risk analysis on TEA Protocol (Optimism)",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Financial and Insurance Industry",
        "Topic :: Office/Business :: Financial :: Investment",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
        "Framework :: AsyncIO",
    ],
    packages=find_packages(exclude=["tests*", "docs*"]),
    py_modules=["main"],
    python_requires=">=3.9",
    install_requires=read_requirements("requirements.txt"),
    extras_require={
        "dev": read_requirements("test-requirements.txt"),
    },
    entry_points={
        "console_scripts": [
            "alphafinders=main:main",
        ],
    },
    zip_safe=False,
    keywords=[
        "telegram", "cryptocurrency", "dex", "defi", "bot",
        "optimism", "velodrome", "dexscreener", "web3", "tea-protocol"
    ],
)
