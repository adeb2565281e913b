"""Setup script for the Roleboard Python client"""
from setuptools import find_namespace_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="roleboard-client",
    version="0.1.0",
    author="Roleboard Team",
    description="Python client for the Roleboard admin API - accounts, audit log and notifications",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["roleboard_client*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
    ],
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",
    ],
)
