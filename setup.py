"""
Setup file.
"""

from setuptools import setup

KEYWORDS = "sqlcipher openssl sqlite build android ios cross-compile"


if __name__ == "__main__":
    setup(keywords=KEYWORDS)
