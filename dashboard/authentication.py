"""
Legacy token authentication.

JWT is the primary scheme; this subclass keeps the ``Token <key>``
header working for clients issued a token at sign-in.  It lives in its
own module so that DRF can import it from settings without pulling in
any views.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """DRF token authentication under the ``Token`` keyword."""

    keyword = 'Token'
