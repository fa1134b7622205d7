from setuptools import setup, find_packages

setup(
    name="videomerger",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "rich>=13.0.0",  # Explicit minimum version
        "psutil",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "videomerger=videomerger.__main__:main",
        ],
    },
    python_requires=">=3.8",
)
