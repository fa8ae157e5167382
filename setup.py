# -*- coding: utf-8 -*-
from setuptools import setup

# Import version from the package itself
VERSION = __import__('openid_rp').__version__
INSTALL_REQUIRES = [
    'python-openid2 >=3.0',
]
EXTRAS_REQUIRE = {
    'quality': ('flake8', 'isort'),
    'tests': ('testfixtures', 'coverage'),
}
LONG_DESCRIPTION = open('README.md').read()
CLASSIFIERS = [
    'Development Status :: 5 - Production/Stable',
    'Environment :: Web Environment',
    'Intended Audience :: Developers',
    'License :: OSI Approved :: Apache Software License',
    'Operating System :: POSIX',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Topic :: Internet :: WWW/HTTP',
    'Topic :: Software Development :: Libraries :: Python Modules',
    'Topic :: System :: Systems Administration :: Authentication/Directory',
]


setup(
    name='openid-rp',
    version=VERSION,
    description='OpenID 2.0 relying party flow with attribute exchange.',
    long_description=LONG_DESCRIPTION,
    long_description_content_type='text/markdown',
    packages=['openid_rp',
              'openid_rp.test',
              ],
    python_requires='>=3.6',
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
    test_suite='openid_rp.test',
    classifiers=CLASSIFIERS,
)
