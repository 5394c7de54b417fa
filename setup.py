from setuptools import setup, find_packages

setup(
    name="clipforge",
    version="0.1.0",
    packages=find_packages(include=["clipforge", "clipforge.*"]),
    install_requires=[
        "ffmpeg-python",
        "rich>=13.0.0",  # Explicit minimum version
        "psutil",
        "numpy",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "clipforge=clipforge.__main__:main",
        ],
    },
    python_requires=">=3.8",
)
