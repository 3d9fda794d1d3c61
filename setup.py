import io
import os
import re

from setuptools import find_packages, setup


def read(filename):
    filename = os.path.join(os.path.dirname(__file__), filename)
    text_type = type(u"")
    with io.open(filename, mode="r", encoding='utf-8') as file_desc:
        return re.sub(
            text_type(r':[a-z]+:`~?(.*?)`'),
            text_type(r'``\1``'),
            file_desc.read()
        )


setup(
    name="sftp-fetch",
    version="0.0.1",
    license="MIT",

    description="Fetch a single remote file over SFTP, based on ssh2-python package",
    long_description=read("README.rst"),

    packages=find_packages(exclude=('tests', 'docs', 'examples')),

    python_requires='>=3.8',

    install_requires=[
        'ssh2-python'
    ],

    extras_require={
        'test': [
            'pytest',
            'pytest-sftpserver',
            'factory_boy',
            'pytest-factoryboy',
        ],
    },

    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Intended Audience :: Developers',
        'Operating System :: POSIX :: Linux',
        'Topic :: Internet',
        'Topic :: Software Development :: Libraries',
    ],
)
