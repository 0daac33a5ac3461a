import os
from setuptools import setup, find_packages

long_description = ""
if os.path.exists("README.md"):
    with open("README.md", "r", encoding="utf-8") as readme:
        long_description = readme.read()

setup(
    name="django-graphql-transport",
    version="0.1.0",
    description="GraphQL over HTTP and WebSocket transport for Django: batching, multipart uploads and subscriptions.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["graphql_transport", "graphql_transport.*"]),
    include_package_data=True,
    install_requires=[
        "Django>=4.2.27",
        "graphene-django>=3.1.5",
        "graphql-core>=3.2",
        "asgiref>=3.6",
        "cbor2>=5.4",
    ],
    extras_require={
        "subscriptions": [
            "channels>=4.2.0",
        ],
        "test": [
            "pytest>=7.4",
            "pytest-django>=4.5",
            "channels[daphne]>=4.2.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Web Environment",
        "Framework :: Django",
        "Framework :: Django :: 4.2",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.9",
)
