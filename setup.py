from setuptools import setup, find_packages

setup(
    name="lexiq-assessment",
    version="0.1.0",
    packages=find_packages(exclude=["lexiq.tests", "lexiq.tests.*"]),
    install_requires=[
        "pydantic>=1.10.0",
        "PyYAML>=6.0",
        "python-dotenv>=0.19.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    python_requires=">=3.8",
)
