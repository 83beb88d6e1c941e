#!/usr/bin/env python

from setuptools import setup

setup(
    name="zuza",
    version="1.0.0",
    description="Date-partitioned file sharing store and API",
    packages=["zuza", "zuza.api", "zuza.store"],
    include_package_data=True,
    zip_safe=False,
    keywords=["API", "files", "storage"],
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Topic :: System :: Filesystems",
    ],
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "anyio>=4",
        "python-multipart",
        "python-dotenv",
        "pydantic>=2",
        "pydantic-settings",
        'uvicorn',
    ],
    extras_require={
        'dev': [
            'pytest',
            'httpx',
            'mypy',
            'flake8',
            'pre-commit',
        ]
    },
    entry_points={
        'console_scripts': [
            'zuza = zuza.__main__:main'
        ]
    },
)
