import os
from setuptools import setup

NAME = 'scaler'


def getPackages(base):
    """
    Recursively find python packages.
    """
    packages = []

    for directory, _dirs, files in os.walk(base):
        if '__init__.py' in files:
            packages.append(directory.replace(os.sep, '.'))

    return packages

packages = getPackages(NAME)


setup(
    name=NAME,
    version='0.0.0',
    description='Set the scaling rules of a deployment and wait for them '
                'to take effect',
    packages=packages,
    python_requires='>=3.7',
    install_requires=[
        'attrs',
        'constantly',
        'effect>=1.0',
        'jsonschema',
        'pyrsistent',
        'pyyaml',
        'toolz',
        'treq',
        'twisted',
        'txeffect>=1.0',
    ],
    extras_require={
        'test': ['mock', 'testtools'],
    },
    entry_points={
        'console_scripts': ['scaler = scaler.cli:console_main'],
    },
)
