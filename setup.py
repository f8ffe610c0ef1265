from setuptools import setup, find_packages

def get_dependencies(path='requirements.txt'):
    """Reads the dependencies from a requirements file."""
    with open(path, 'r') as d:
        dependencies = d.read()

    return dependencies

setup(
    name='objectmother',
    version='1.0.0',
    packages=find_packages(include=['objectmother*']),
    install_requires=get_dependencies(),
    extras_require={
      'test': get_dependencies('test-requirements.txt')}
)
