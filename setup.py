#!/usr/bin/env python

import os
import re

from setuptools import setup  # type: ignore[import]

here = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(here, "classic_consumer", "__init__.py")) as f:
    version = re.search(r'^__version__ = "([^"]+)"', f.read(), re.M).group(1)  # type: ignore[union-attr]

setup(
    name="classic-consumer",
    version=version,
    description="JWT-bearer access tokens and authenticated calls to the classic API, on behalf of members.",
    url="https://github.com/WIPACrepo/classic-consumer",
    packages=["classic_consumer"],
    python_requires=">=3.9",
    install_requires=[
        "prometheus-client",
        "PyJWT[crypto]",
        "requests",
        "wipac-dev-tools",
        "wipac-rest-tools>=1.13",
        "wipac-telemetry",
    ],
    extras_require={
        "test": [
            "cryptography",
            "pytest",
            "pytest-asyncio",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "classic-consumer=classic_consumer.consumer_cmd:main_sync",
        ],
    },
    classifiers=[
        "Operating System :: POSIX :: Linux",
        "Topic :: Internet :: WWW/HTTP",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: Implementation :: CPython",
    ],
    zip_safe=False,
)
