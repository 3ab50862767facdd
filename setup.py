"""
Setup script for Azure VM Image Browser CLI.
"""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="azure-vm-image-browser",
    version="1.0.0",
    author="Cloud Platform Team",
    author_email="platform@example.com",
    description="Interactive Azure VM image catalog browser with Markdown reports",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/your-org/azure-vm-image-browser",
    packages=find_packages(exclude=["tests"]),
    py_modules=["main", "config", "catalog_client", "paginator", "workflow", "report_exporter"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Systems Administration",
        "Topic :: Utilities",
    ],
    python_requires=">=3.9",
    install_requires=[
        "typer[all]>=0.9.0",
        "rich>=13.7.0",
        "python-dotenv>=1.0.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "vm-image-browser=main:main",
        ],
    },
    keywords=[
        "azure",
        "vm",
        "image",
        "marketplace",
        "cloud",
        "cli",
    ],
)
