from setuptools import setup

# Metadata goes in pyproject.toml.
# These are here for GitHub's dependency graph and help with setuptools support in some environments.
setup(
    name="nats-options",
    version="0.1.0",
    license="Apache 2 License",
    install_requires=["nkeys", "typing-extensions"],
    extras_require={
        "tests": ["pytest", "pytest-asyncio"],
    },
    packages=["nats_options", "nats_options.protocol"],
    package_data={"nats_options": ["py.typed"]},
    zip_safe=True,
)
