"""Setup script for the Decision Simulation Engine package."""

from setuptools import setup, find_packages

# Read long description from README
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="decision-simulation-engine",
    version="0.1.0",
    author="Decision Engine Team",
    description="What-if cash-flow simulation and risk analysis for small-business decisions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=[
        "core", "core.*",
        "scenarios", "scenarios.*",
        "forecasting", "forecasting.*",
        "engine", "engine.*",
        "risk", "risk.*",
        "comparison", "comparison.*",
    ]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Financial and Insurance Industry",
        "Topic :: Office/Business :: Financial",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.24.0",
        "pandas>=2.0.0",
        "scipy>=1.10.0",
        "pydantic>=2.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.3.0",
            "pytest-cov>=4.0.0",
            "hypothesis>=6.80.0",
            "black>=23.3.0",
            "flake8>=6.0.0",
            "mypy>=1.3.0",
            "isort>=5.12.0",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
