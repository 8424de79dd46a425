#!/usr/bin/env python
"""Setuptools distribution file."""
import os
from setuptools import setup


def _get_here(fname):
    return os.path.join(os.path.dirname(__file__), fname)


def _get_long_description(fname, encoding='utf8'):
    with open(fname, 'r', encoding=encoding) as fin:
        return fin.read()


setup(name='rconshell',
      version='0.1.0',
      license='ISC',
      description="Interactive RCON shell completing commands from the "
                  "server's own help output",
      long_description=_get_long_description(fname=_get_here('README.rst')),
      long_description_content_type='text/x-rst',
      packages=['rconshell'],
      python_requires='>=3.8',
      install_requires=[
          'prompt_toolkit>=3.0.29',
          'wcwidth>=0.2.6',
      ],
      extras_require={
          'test': ['pytest', 'pytest-asyncio'],
      },
      entry_points={
         'console_scripts': [
             'rconshell = rconshell.client:main',
         ]},
      platforms='any',
      zip_safe=True,
      keywords=', '.join(('rcon', 'minecraft', 'shell', 'completion',
                          'repl', 'asyncio', 'prompt_toolkit')),
      classifiers=['License :: OSI Approved :: ISC License (ISCL)',
                   'Programming Language :: Python :: 3',
                   'Intended Audience :: System Administrators',
                   'Development Status :: 4 - Beta',
                   'Environment :: Console',
                   'Topic :: Games/Entertainment',
                   'Topic :: System :: Shells',
                   ],
      )
