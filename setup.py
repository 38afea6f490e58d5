from setuptools import find_packages, setup


setup(
    name="outlineforge",
    version="0.1.0",
    description="Board outline reconstruction from Gerber edge graphics",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "pcb-tools==0.1.6",
        "shapely==2.1.2",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "outlineforge=outlineforge.cli:main",
        ]
    },
)
