"""
VZWAV - VZ200/VZ300 cassette audio encoder and decoder
Setup configuration.
"""

from pathlib import Path
from setuptools import setup, find_packages

# Read README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding='utf-8') if readme_file.exists() else ""

# Read requirements
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_file.exists():
    requirements = [
        line.strip()
        for line in requirements_file.read_text(encoding='utf-8').splitlines()
        if line.strip() and not line.startswith("#")
    ]

setup(
    name="vzwav",
    version="0.1.0",
    description="VZ200/VZ300 cassette tape image to audio converter and decoder",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="VZWAV Contributors",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=requirements,
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "vzwav-encode=vzwav.cli.encode:main",
            "vzwav-decode=vzwav.cli.decode:main",
            "vzwav-cas=vzwav.cli.cas:main",
        ],
    },
    extras_require={
        "test": ["pytest>=7.0"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: System :: Emulators",
    ],
)
