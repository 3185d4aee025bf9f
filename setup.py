from pathlib import Path

from setuptools import find_packages, setup

long_description = Path("README.md").read_text().strip()

setup(
    name="epbd",
    version="0.1.0",
    author="epbd contributors",
    description="Energy performance of buildings (EN ISO 52000-1) balance engine",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "pandas",
    ],
    extras_require={
        "dev": [
            "black",
            "isort",
            "mypy",
            "pytest-cov",
            "pytest",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords=[
        "energy performance of buildings",
        "EN ISO 52000-1",
        "primary energy",
        "renewable energy ratio",
        "energy balance",
    ],
)
