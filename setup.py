from setuptools import find_packages, setup

setup(
    name="termbg",
    version="0.1.0",
    description="Detect terminal's background color and light or dark theme",
    license="MIT",
    packages=find_packages(include=["termbg", "termbg.*"]),
    python_requires=">=3.10",
    install_requires=[
        "typing_extensions>=4.6",
    ],
    extras_require={
        "test": [
            "pytest",
            "sybil>=6",
        ],
    },
    entry_points={
        "console_scripts": [
            "termbg = termbg.__main__:main",
        ],
    },
)
