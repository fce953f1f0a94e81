"""Access log lines for Python web applications, written from
morgan- and Apache-style format strings like ``":method :url :status"``
or presets like ``combined`` and ``dev``. Formats are compiled once,
lines are rendered per request.

BSD-licensed.
"""

import sys
from setuptools import setup, find_packages


__author__ = 'accesslog contributors'
__version__ = '0.1.0'
__url__ = 'https://github.com/accesslog/accesslog'
__license__ = 'BSD'

desc = ('Compiled, token-based HTTP access log formatting, with'
        ' Apache/morgan presets and WSGI middleware.')


if sys.version_info < (3, 7):
    raise NotImplementedError("Sorry, accesslog only supports Python >=3.7")


setup(name='accesslog',
      version=__version__,
      description=desc,
      long_description=__doc__,
      author=__author__,
      url=__url__,
      packages=find_packages(),
      install_requires=['boltons>=20.0.0'],
      extras_require={'test': ['pytest']},
      python_requires='>=3.7',
      include_package_data=True,
      zip_safe=False,
      license=__license__,
      platforms='any',
      classifiers=[
          'Intended Audience :: Developers',
          'Topic :: System :: Logging',
          'Topic :: Internet :: WWW/HTTP :: WSGI :: Middleware',
          'License :: OSI Approved :: BSD License',
          'Programming Language :: Python :: 3',
          'Programming Language :: Python :: Implementation :: CPython',
          'Programming Language :: Python :: Implementation :: PyPy',
      ]
)


"""
A brief checklist for release:

* pytest
* git commit (if applicable)
* Bump setup.py version off of -dev
* git commit -a -m "bump version for x.y.z release"
* python -m build && twine upload dist/*
* git tag -a x.y.z -m "brief summary"
* write CHANGELOG
* bump setup.py version onto n+1 dev
* git commit
* git push

"""
