#!/usr/bin/env python

"""
Setup script for the Python package. Test dependencies are in the 'test' extra.
"""

from setuptools import find_packages, setup

PKG = 'seqpublish'

all_packages = ['seqpublish']
all_packages.extend('seqpublish.' + p for p in sorted(find_packages('./seqpublish')))

with open('README.md', encoding='utf-8') as f:
    readme = f.read()


setup(
    name=PKG,
    # This tag is automatically updated by bump2version
    version='1.0.0',
    description='Publish sequencing instrument output to object storage with metadata',
    long_description=readme,
    long_description_content_type='text/markdown',
    license='MIT',
    packages=all_packages,
    python_requires='>=3.10',
    install_requires=[
        'click',
        'google-auth',
        'google-api-core',  # dependency to google-auth that however is not
        # pulled automatically: https://github.com/googleapis/google-auth-library-python/blob/main/setup.py#L22-L27
        'google-cloud-storage',
        'cpg-utils >= 4.9.4',
        'gql[requests]',
        'graphql-core',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'seqpublish-analysis = seqpublish.cli.publish_isoseq_analysis:main',
            'seqpublish-logs = seqpublish.cli.publish_run_logs:main',
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords='bioinformatics',
    classifiers=[
        'Environment :: Console',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Operating System :: MacOS :: MacOS X',
        'Operating System :: POSIX',
        'Operating System :: Unix',
        'Programming Language :: Python',
        'Topic :: Scientific/Engineering',
        'Topic :: Scientific/Engineering :: Bio-Informatics',
    ],
)
