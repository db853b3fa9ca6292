from setuptools import setup, find_packages

setup(
    name="shelfiq",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "shelfiq": ["data/baseline/*.csv", "data/baseline/*.json"],
    },
    install_requires=[
        "pandas>=1.5.0",
        "numpy>=1.21.0",
        "matplotlib>=3.4.0",
        "seaborn>=0.11.0",
        "openpyxl>=3.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": ["shelfiq=shelfiq.cli:main"],
    },
    python_requires=">=3.8",
)
