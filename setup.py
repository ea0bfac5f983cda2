"""Bank Statement Verifier - Setup Configuration."""

from setuptools import setup, find_packages
import os

# Read the contents of README file
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, "README.md"), encoding="utf-8") as fh:
    long_description = fh.read()

# Read the contents of requirements file
with open(os.path.join(this_directory, "requirements.txt"), encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="bank-statement-verifier",
    version="1.0.0",
    author="Statement Verification Team",
    author_email="support@example.com",
    description="Verifies PDF bank statements with page rasterization, model-based extraction and balance reconciliation",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["statement_verifier", "statement_verifier.*"]),
    py_modules=["main"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Financial and Insurance Industry",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business :: Financial",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "mypy>=1.0.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "reportlab>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "statement-verifier=main:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords="pdf bank statement verification reconciliation fraud openai",
)
