#!/usr/bin/env python3
"""
SyncAI - Sync AI coding tool configurations across machines
"""

from setuptools import setup, find_packages
import os

# Read the README file
current_dir = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(current_dir, "README.md"), "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read requirements
with open(os.path.join(current_dir, "requirements.txt"), "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="syncai",
    version="1.0.0",
    author="SyncAI Team",
    author_email="admin@syncai.dev",
    description="Sync AI coding tool configurations across machines through a private Git repository",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/syncai/syncai",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development",
        "Topic :: Utilities",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=22.0.0",
            "flake8>=5.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "syncai=syncai.cli:main",
        ],
    },
    project_urls={
        "Bug Reports": "https://github.com/syncai/syncai/issues",
        "Source": "https://github.com/syncai/syncai",
    },
    keywords="ai claude cursor gemini kiro configuration sync git dotfiles",
    zip_safe=False,
)
