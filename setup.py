import os
from setuptools import setup, find_packages

here = os.path.dirname(os.path.abspath(__file__))

def parse_requirements(requirements):
    with open(os.path.join(here, requirements)) as f:
        return [l.strip('\n') for l in f if l.strip('\n') and not l.startswith('#')]

requirements = parse_requirements("requirements.txt")

setup(
    name='lms-backend',
    version='0.1.0',
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "httpx>=0.24",
        ],
    },
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "lms=lms_backend.cli.cli:cli",
        ],
    }
)
