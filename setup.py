"""
Confidential Swap Setup
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read() if f else ""

setup(
    name="confidential-swap",
    version="1.0.0",
    author="Confidential Swap Team",
    description="Confidential order and swap protocol with zero-knowledge proofs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["cswap", "cswap.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyNaCl>=1.5.0",
        "pycryptodome>=3.19.0",
        "httpx>=0.25.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-timeout>=2.2.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security :: Cryptography",
    ],
    keywords="confidential-swap elgamal pedersen zero-knowledge range-proof ed25519",
)
