#!/usr/bin/env python3
"""Setup script for foreman - feature verification engine."""

import subprocess
from pathlib import Path
from setuptools import find_packages, setup
from setuptools.command.build_py import build_py
from setuptools.command.install import install


def get_git_commit():
    """Get the current git commit hash."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
            cwd=Path(__file__).parent
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        return "unknown"


def stamp_version_file():
    """Write the build commit into foreman/_version.py."""
    version_file = Path(__file__).parent / "foreman" / "_version.py"
    if not version_file.exists():
        return

    git_commit = get_git_commit()
    lines = version_file.read_text(encoding="utf-8").split('\n')
    stamped = [
        f'FOREMAN_GIT_COMMIT = "{git_commit}"' if line.startswith('FOREMAN_GIT_COMMIT') else line
        for line in lines
    ]
    version_file.write_text('\n'.join(stamped), encoding="utf-8")
    print(f"Stamped _version.py with git commit: {git_commit}")


class BuildPyCommand(build_py):
    """Build command that records the git commit."""

    def run(self):
        stamp_version_file()
        super().run()


class InstallCommand(install):
    """Install command that records the git commit."""

    def run(self):
        stamp_version_file()
        super().run()


# Read the version without importing the package (yaml may not be installed yet)
version_ns = {}
version_file = Path(__file__).parent / "foreman" / "_version.py"
if version_file.exists():
    exec(version_file.read_text(encoding="utf-8"), version_ns)
FOREMAN_VERSION = version_ns.get("FOREMAN_VERSION", "0.0.0")

readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_file.exists():
    requirements = [
        line.strip()
        for line in requirements_file.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.startswith("#")
    ]

setup(
    name="foreman-verify",
    version=FOREMAN_VERSION,
    description="Feature verification engine: capability discovery, automated checks and agent-judged acceptance criteria",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Foreman Team",
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        'dev': [
            'pytest>=7.0.0',
            'pytest-asyncio>=0.21.0',
            'pytest-cov>=4.0.0',
            'black>=23.0.0',
            'mypy>=1.0.0',
            'pylint>=2.16.0',
        ],
    },
    packages=find_packages(
        exclude=["tests", "tests.*", "build", "build.*"]
    ),
    cmdclass={
        'build_py': BuildPyCommand,
        'install': InstallCommand,
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Quality Assurance",
        "Topic :: Software Development :: Testing",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="verification acceptance-criteria testing ci agents automation",
)
