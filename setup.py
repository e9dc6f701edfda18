from setuptools import find_packages, setup  # noqa

extras_require = {
    "test": [
        "mock",
        "pytest",
    ],
}

__version__ = "0.0.0+develop"

setup(
    name="imagetask",
    version=__version__,
    maintainer="imagetask Contributors",
    packages=find_packages(
        include=["imagetask", "imagetask.*"],
        exclude=["tests*"],
    ),
    include_package_data=True,
    description="Incremental docker image build tasks for multi-project build graphs",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    entry_points={
        "console_scripts": [
            "imagetask=imagetask.clis.main:main",
        ]
    },
    install_requires=[
        # Please maintain an alphabetical order in the following list
        "click>=6.6,<9.0",
        "diskcache>=5.2.1",
        "docker>=4.0.0",
        "python-json-logger>=2.0.0",
        "rich",
        "rich_click",
    ],
    extras_require=extras_require,
    license="apache2",
    python_requires=">=3.9",
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Build Tools",
    ],
)
