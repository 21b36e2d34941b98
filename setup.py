from setuptools import setup, find_packages

setup(
    name="cmview",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
    "numpy == 2.4.2",
    "biopython == 1.86",
    "pandas == 2.3.3",
    "matplotlib == 3.10.8",

    "typing-extensions == 4.15.0",
    "requests == 2.32.5",
    "unidecode == 1.4.0",
    "psutil >= 5.9",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "cmview = cmview.cli:main",
        ],
    },
)
