from setuptools import setup, find_packages

setup(
    name="minirelay",
    version="0.1.0",
    description="Single-threaded TCP line relay",
    packages=find_packages(include=["minirelay", "minirelay.*"]),
    python_requires=">=3.10",
    install_requires=[
        "python-dotenv==1.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.3.0",
            "black",
            "ruff",
        ]
    },
    entry_points={
        "console_scripts": [
            "minirelay=minirelay.cli:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
