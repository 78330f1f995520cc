from setuptools import setup, find_packages

setup(
    name="bond_pricing_engine",
    version="0.1.0",
    description="Bond pricing engine: discounting, yield/spread inversion, synthetic schedules",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
