import io
import re

from setuptools import find_packages, setup

__version__ = re.search(
    r'__version__\s*=\s*[\'"]([^\'"]*)[\'"]',
    io.open("optsched/version.py", encoding="utf_8_sig").read(),
).group(1)


setup(
    name="optsched",
    version=__version__,
    description="optsched computes minimum makespan schedules of task graphs on identical processors.",
    long_description="""optsched computes minimum makespan schedules of precedence constrained task graphs with communication costs, using branch-and-bound search.""",
    author="",
    author_email="",
    packages=find_packages(include=["optsched", "optsched.*"]),
    zip_safe=False,
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "randomname",
        "numpy",
        "networkx",
        "pydot",
        "pyrsistent",
        "sortedcontainers",
        "pydantic>=2",
        "fire",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["optsched=optsched.__main__:cli"],
    },
)
