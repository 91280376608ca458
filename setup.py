from setuptools import setup, find_packages

setup(
    name="tsengine",
    version="0.1.0",
    description="Time series transformation and low-flow frequency analysis engine",
    author="onWater Engineering Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        # Keep in sync with requirements.txt
        "numpy>=1.24",
        "pandas>=2.0",
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "scipy>=1.10",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
)
