from setuptools import setup, find_packages

setup(
    name="cluster_crossover",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "scipy",
        "scikit-learn",
        "pandas",
        "numba",
        "click",
    ],
    extras_require={
        "leiden": [
            "scikit-network",
        ],
        "parquet": [
            "pyarrow",
        ],
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cluster-crossover=cluster_crossover.cli:main",
        ],
    },
    description="Overlap tables, resolution crossover graphs and cluster stability for repeated clusterings",
    python_requires=">=3.8",
)
