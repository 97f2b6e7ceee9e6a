"""Package setup for Sales Tax Navigator."""

from setuptools import setup, find_packages

setup(
    name="sales-tax-navigator",
    version="1.0.0",
    description="Sales tax rate lookup, item taxability and compliance reference",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "examples"]),
    python_requires=">=3.10",
    install_requires=[
        "rich>=13.0",
        "httpx>=0.27",
        "pydantic-settings>=2.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "tax-navigator=tax_navigator.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Financial and Insurance Industry",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business :: Financial :: Accounting",
    ],
    keywords="sales-tax taxability nexus jurisdiction new-york alabama",
)
