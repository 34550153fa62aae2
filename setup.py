from setuptools import setup, find_packages

setup(
    name="featmatch",
    version="0.1.0",
    description="Brute-force binary descriptor matching with epipolar RANSAC verification",
    author="featmatch contributors",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    install_requires=[
        "opencv-python>=4.8.0",
        "numpy>=1.24.0",
        "scipy>=1.10.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.10",
)
