# type: ignore
from setuptools import find_packages, setup

# Get VERSION constant from rudderanalytics.version - we can't simply import that module because
# rudderanalytics/__init__.py imports the client, which requires dependencies we may not have
# loaded yet. Based on https://packaging.python.org/guides/single-sourcing-package-version/
version_module_globals = {}
with open('./rudderanalytics/version.py') as f:
    exec(f.read(), version_module_globals)
rudderanalytics_version = version_module_globals['VERSION']


def parse_requirements(filename):
    """ load requirements from a pip requirements file """
    lineiter = (line.strip() for line in open(filename))
    return [line for line in lineiter if line and not line.startswith("#")]


install_reqs = parse_requirements('requirements.txt')
test_reqs = parse_requirements('test-requirements.txt')

# reqs is a list of requirement
# e.g. ['urllib3>=1.26.0', 'certifi>=2018.4.16']
reqs = [ir for ir in install_reqs]
testreqs = [ir for ir in test_reqs]

setup(
    name='rudder-analytics-sdk',
    version=rudderanalytics_version,
    author='RudderStack',
    packages=find_packages(include=['rudderanalytics', 'rudderanalytics.*']),
    description='Analytics event client for Python',
    long_description='Queues analytics events and delivers them to a data plane in batches',
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
