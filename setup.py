# setup.py - Package the resonance core
from setuptools import setup, find_packages

setup(
    name="adaptive_resonance",
    version="0.1.0",
    description="Adaptive resonance clustering with ARTMAP match tracking",
    packages=find_packages(include=["adaptive_resonance", "adaptive_resonance.*"]),
    python_requires=">=3.8",
    install_requires=["numpy>=1.20"],
    extras_require={"test": ["pytest>=7"]},
)
