"""Storefront data-access layer.

Async, parameter-bound access to the Users and Products tables behind two
capability sets: UserService and ProductService.
"""

__version__ = "0.1.0"
