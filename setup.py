from setuptools import setup, find_packages
from codecs import open
from os import path


here = path.abspath(path.dirname(__file__))


with open(path.join(here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

with open(path.join(here, 'wiifitio', '__init__.py')) as pkg:
    __version__ = eval(pkg.readline().split('=')[1])


setup(
    name='wiifitio',
    version=__version__,
    description='Wii Fit save data decoding and sync library',
    long_description=long_description,
    license='MIT',
    keywords='wii fit weight bmi balance save data sync',

    # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Medical Science Apps.',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
    ],

    packages=find_packages(exclude=['*.test']),
    install_requires=[
        'numpy>=1.11.1',
        'pandas>=0.18.1',
        'pytz>=2011.11',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'wiifit=wiifitio._util.cli:main',
        ],
    },
)
