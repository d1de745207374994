"""Cão-Guia: digital identity cards for guide dogs.

Backend for registering PCD users, partner institutions and administrators,
and for issuing each guide dog an identity card. The identity, authentication
and authorization core lives in caoguia.auth.
"""

__version__ = "0.1.0"
