from setuptools import setup, find_packages

setup(
    name="hoopsbracket",
    version="0.1.0",
    description="Tournament game ingestion, team matching and bracket propagation for college basketball picks",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pytz>=2022.7",
        "requests>=2.31.0",
        "supabase>=2.0.0",
        "postgrest>=0.13.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "hoopsbracket=hoopsbracket.main:main",
        ],
    },
)
