#!/usr/bin/env python
# -*- coding: utf-8 -*-


from setuptools import setup

readme = open('README.rst').read()
version = (0, 3, 0)

setup(
    name='statfeed',
    python_requires=">=3.9",
    version=".".join(map(str, version)),
    description='Statistical feedback selection: weight proportional choices without repetitive patterns',
    long_description=readme,
    author='The statfeed developers',
    packages=[
        'statfeed',
    ],
    include_package_data=True,
    install_requires=[
        "numpy",
        "tabulate",
        "matplotlib",
    ],
    extras_require={
        'test': ['pytest'],
    },
    license="BSD",
    zip_safe=False,
    classifiers=[
        'License :: OSI Approved :: BSD License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3.9'
    ],
    package_data={'statfeed': ['py.typed']},
)
