from setuptools import find_packages, setup


setup(
    name="mini-tensor-expr",
    version="0.1.0",
    description="Mini tensor-expression IR: tensor/operation nodes, indexing protocol, reference evaluation",
    author="Relja",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
    ],
    extras_require={
        "dev": [
            "pytest>=7",
        ],
    },
    zip_safe=False,
)
