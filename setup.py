"""Setup script for card_digitizer package."""

from setuptools import setup, find_packages

setup(
    name="card_digitizer",
    version="1.0.0",
    description="Identity document PDF to printable ID card pipeline",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pymupdf>=1.23.0",
        "pillow>=9.0.0",
        "numpy>=1.22.0",
        "opencv-python-headless>=4.6.0",
        "pyzbar>=0.1.9",
        "qrcode>=7.4",
        "python-barcode>=0.15.1",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov",
        ],
    },
    entry_points={
        "console_scripts": [
            "card-digitizer=card_digitizer.cli:main",
        ],
    },
)
