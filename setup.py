from setuptools import setup, find_packages

setup(
    name="conequad",
    version="0.1.0",
    description="Guaranteed 1-D integration and function approximation for functions in cones",
    author="adamfilli",
    packages=find_packages(include=["conequad", "conequad.*"]),
    install_requires=[
        "numpy",
    ],
    extras_require={
        "dev": [
            "pytest",
            "matplotlib",
        ],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
