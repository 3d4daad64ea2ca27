# type: ignore
from setuptools import find_packages, setup

# Get VERSION constant from flareclient.version - we can't simply import that module because
# flareclient/__init__.py imports modules that require dependencies we may not have loaded yet.
# Based on https://packaging.python.org/guides/single-sourcing-package-version/
version_module_globals = {}
with open('./flareclient/version.py') as f:
    exec(f.read(), version_module_globals)
flareclient_version = version_module_globals['VERSION']


def parse_requirements(filename):
    """ load requirements from a pip requirements file """
    lineiter = (line.strip() for line in open(filename))
    return [line for line in lineiter if line and not line.startswith("#")]


reqs = parse_requirements('requirements.txt')
testreqs = parse_requirements('test-requirements.txt')

setup(
    name='flare-server-sdk',
    version=flareclient_version,
    packages=find_packages(include=['flareclient', 'flareclient.*']),
    description='Flare feature flag SDK for Python',
    long_description='Flare feature flag SDK for Python',
    install_requires=reqs,
    python_requires='>=3.8',
    classifiers=[
        'Intended Audience :: Developers',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development',
        'Topic :: Software Development :: Libraries',
    ],
    extras_require={
        "test": testreqs,
    },
    tests_require=testreqs,
)
