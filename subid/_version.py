"""
Module where the version is written.

It is executed in setup.py and imported in subid/__init__.py.

'a' or 'alpha' means alpha version (internal testing),
'b' or 'beta' means beta version (external testing).

Append with .postN for post-release updates that only touch packaging or
documentation.
"""
__version__ = '0.3.0'
