from setuptools import setup, find_packages


setup(
    name="asarfile",
    version="0.1",
    packages=find_packages(),
    description="Read, extract and pack ASAR archives (JSON header + concatenated file data).",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "asarfile=asarfile.cli:main",
        ]
    },
)
