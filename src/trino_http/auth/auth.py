from trino_http.auth.authenticators import (
    AuthProvider,
    AccessTokenAuthProvider,
    BasicAuthProvider,
    ExternalAuthProvider,
)


def get_auth_provider(**kwargs) -> AuthProvider:
    """Pick the auth provider matching the connection keyword arguments.

    An explicit `auth` provider wins, then a `credentials_provider`, then an
    `access_token`, then `username`/`password`. Without any of these requests
    carry no Authorization header.
    """
    if kwargs.get("auth") is not None:
        return kwargs["auth"]
    elif kwargs.get("credentials_provider") is not None:
        return ExternalAuthProvider(kwargs["credentials_provider"])
    elif kwargs.get("access_token"):
        if kwargs.get("password"):
            raise ValueError("access_token and password cannot be combined")
        return AccessTokenAuthProvider(kwargs["access_token"])
    elif kwargs.get("username"):
        return BasicAuthProvider(kwargs["username"], kwargs.get("password"))
    elif kwargs.get("password"):
        raise ValueError("A password was given without a username")
    else:
        return AuthProvider()
