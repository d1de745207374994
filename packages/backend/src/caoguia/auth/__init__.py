"""Authentication and authorization.

Three principal kinds share one token format:
1. PCD users    → email/password → JWT (role PCD)
2. Admins       → same login as users, is_admin flag → JWT (role ADMIN)
3. Institutions → separate login, must be approved → JWT (role INSTITUICAO)

Every protected request re-validates the token's principal against the
database, so deactivating an account revokes its tokens on the next request.
"""
