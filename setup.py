"""
Setup file.
"""

from setuptools import find_packages, setup

KEYWORDS = "static site generator build incremental jinja2 pages"

INSTALL_REQUIRES = [
    "PyYAML>=6.0",
    "Jinja2>=3.1",
    "psutil>=5.9",
]


if __name__ == "__main__":
    setup(
        name="sitewright",
        version="0.1.0",
        description="Build orchestrator for static sites with incremental updates",
        maintainer="sitewright contributors",
        keywords=KEYWORDS,
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        python_requires=">=3.10",
        install_requires=INSTALL_REQUIRES,
        extras_require={"test": ["pytest>=7"]},
        entry_points={"console_scripts": ["sitewright=sitewright.cli:main"]},
        include_package_data=True)
