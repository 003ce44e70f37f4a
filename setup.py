import os

from setuptools import setup


def rel(*xs):
    return os.path.join(os.path.abspath(os.path.dirname(__file__)), *xs)


with open(rel("README.md")) as f:
    long_description = f.read()


with open(rel("throttlegate", "__init__.py")) as f:
    version_marker = "__version__ = "
    for line in f:
        if line.startswith(version_marker):
            _, version = line.split(version_marker)
            version = version.strip().strip('"')
            break
    else:
        raise RuntimeError("Version marker not found.")


dependencies = ["prometheus-client>=0.2", "pytz", "python-dateutil>=2.8.0", "attrs>=19.2.0"]

extra_dependencies = {
    "redis": ["redis>=5.0.1"],
    "postgres": ["sqlalchemy[asyncio]>=1.4.29", "asyncpg"],
}

extra_dependencies["all"] = list(set(sum(extra_dependencies.values(), [])))
extra_dependencies["dev"] = extra_dependencies["all"] + [
    # Linting
    "flake8",
    "flake8-bugbear",
    "flake8-quotes",
    "isort",
    "black~=23.12",
    "mypy~=1.10.0",
    "types-redis",
    "types-python-dateutil",
    "types-pytz",
    # Misc
    "pre-commit",
    "bumpversion",
    "twine",
    # Testing
    "pytest",
    "pytest-cov",
    "pytest-timeout",
    "pytest-asyncio",
    "freezegun",
    "aiosqlite",
]

setup(
    name="throttlegate",
    version=version,
    author="Wiremind",
    author_email="dev@wiremind.io",
    description="Run an action at most once per time window and key, across processes.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=[
        "throttlegate",
        "throttlegate.backends",
        "throttlegate.stores",
    ],
    package_data={"throttlegate": ["py.typed"]},
    include_package_data=True,
    install_requires=dependencies,
    python_requires=">=3.9",
    extras_require=extra_dependencies,
    classifiers=[
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: System :: Distributed Computing",
        "License :: OSI Approved :: GNU Lesser General Public License v3 or later (LGPLv3+)",
    ],
)
