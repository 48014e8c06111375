import sys

if sys.version_info < (3, 10, 0):
    sys.stderr.write("ERROR: You need Python 3.10 or later to use pglo.\n")
    exit(1)

# noinspection PyPep8
from setuptools import setup

long_description = '''
pglo -- Streaming access to PostgreSQL large objects
=====================================================

pglo lets asyncio applications create, open, read, write, seek, truncate
and delete PostgreSQL large objects, and stream them to and from files or
network sockets one chunk at a time, without ever holding a whole object
in memory. It works with both aiopg and psycopg 3 connections.
'''.lstrip()

packages = [
    'pglo',
]

install_requires = [
    'aiopg',
    'attrs',
    'psycopg[binary]',
    'psycopg-pool',
    'psycopg2-binary',
]

extras_require = {
    'test': [
        'pytest',
        'pytest-asyncio',
    ],
}

setup(
    name='pglo',
    version='1.0.0',
    description='Streaming PostgreSQL large objects for asyncio',
    long_description=long_description,
    license='MIT',
    packages=packages,
    python_requires='>=3.10',
    install_requires=install_requires,
    extras_require=extras_require,
    classifiers=[
        'Development Status :: 4 - Beta',
        'Topic :: Database',
        'Framework :: AsyncIO',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
    ],
)
