from setuptools import setup, find_packages

setup(
    name="pixeltrack",
    version="0.1.0",
    packages=find_packages(where=".", exclude=["tests", "tests.*"]),
    package_dir={"": "."},
    python_requires=">=3.9",
    install_requires=[
        "opencv-python",
        "numpy",
        "imutils",
        "scipy",
    ],
    extras_require={
        "test": [
            "pytest",
            "scikit-image",
        ],
    },
    entry_points={
        "console_scripts": ["pixeltrack=pixeltrack.cli:main"],
    },
)
