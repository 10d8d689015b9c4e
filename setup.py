from setuptools import setup, find_packages

setup(
    name="flipdot",
    version="0.1.0",
    description="Fixed-rate frame pipeline for OWOW/AlfaZeta flip dot displays",
    packages=find_packages(include=["flipdot", "flipdot.*"]),
    python_requires=">=3.11",
    install_requires=[
        "aioserial>=1.3.0",
        "numpy>=1.23.0",
        "Pillow>=9.2.0",
        "pyserial>=3.5",
    ],
    extras_require={
        "test": ["pytest", "pytest-asyncio"],
    },
    tests_require=["pytest", "pytest-asyncio"],
    entry_points={
        "console_scripts": [
            "flipdot=flipdot.__main__:main",
            "flipdot-simulator=flipdot.simulator:main",
        ],
    },
)
