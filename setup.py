# setup.py - Package the moment matrix engine
from setuptools import setup, find_packages

setup(
    name="symbolic_moments",
    version="0.1.0",
    packages=find_packages(include=["symbolic_moments", "symbolic_moments.*"]),
    python_requires=">=3.8",
    install_requires=["numpy"],
    extras_require={"test": ["pytest"]},
)
