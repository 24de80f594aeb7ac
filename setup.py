from setuptools import setup, find_packages

with open("requirements.txt") as f:
    required = f.read().splitlines()

setup(
    name="mbt",
    version="0.1.0",
    packages=find_packages("src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=required,
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["mbt = mbt.cli:main"]},
    description="Monorepo manifest resolution: applications per commit and per diff",
)
