from setuptools import setup, find_packages

setup(
    name="pkginstall",
    version="0.1.0",
    description="Local installation engine for packaged software: extraction, native builds and shared command stubs.",
    license="GPL-3.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "rich>=13.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "pkginstall=pkginstall.modules.cli:main",
        ],
    },
)
