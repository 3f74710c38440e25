"""Setup configuration for UpDown Trading System package."""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="updown-trading-system",
    version="0.1.0",
    author="UpDown Trading System Contributors",
    description="Signal, sizing and risk engine for binary UP/DOWN prediction markets",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src", include=["updown_trading", "updown_trading.*"]),
    python_requires=">=3.11",
    install_requires=[
        "requests>=2.32.3",
        "pydantic>=2.7.0",
        "tenacity>=8.2.3",
        "ccxt>=4.3.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.3.3",
            "pytest-cov>=5.0.0",
            "mypy>=1.11.2",
            "black>=24.8.0",
            "ruff>=0.6.9",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Office/Business :: Financial :: Investment",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
    ],
    entry_points={
        "console_scripts": [
            "updown-trading=updown_trading.cli.trading_cli:main",
        ],
    },
)
