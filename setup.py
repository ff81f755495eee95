from setuptools import setup, find_packages
import pathlib

# Detect layout
use_src = pathlib.Path("src/dsvload").exists()
pkg_args = {"package_dir": {"": "src"}, "packages": find_packages(where="src")} if use_src \
           else {"packages": find_packages(where=".")}

setup(
    name="dsv-loader",
    version="0.1.0",
    python_requires=">=3.8",
    include_package_data=True,
    install_requires=[
        "typer",
        "PyYAML",
        "pydantic>=2",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["dsvload=dsvload.cli:app"]},
    **pkg_args
)
