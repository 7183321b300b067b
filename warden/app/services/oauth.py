"""External OAuth provider registry and login linking.

Only providers with credentials in the configuration are registered. The
authorization round trip itself is Authlib's; this module maps each
provider's profile payload to :class:`ExternalClaims` and links the result
to a local user.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from authlib.integrations.starlette_client import OAuth

from ...config import ConfigSource
from ..domain.models import User
from ..domain.session import ExternalClaims
from .identity import IdentityStore

logger = logging.getLogger(__name__)

TWITTER = "twitter"
FACEBOOK = "facebook"
GOOGLE = "google"
MICROSOFT = "microsoft"


class UnknownProvider(LookupError):
    pass


def _register_twitter(oauth: OAuth, config: ConfigSource) -> bool:
    key = config["oauth.twitter.ConsumerKey"]
    secret = config["oauth.twitter.ConsumerSecret"]
    if not key or not secret:
        return False
    oauth.register(
        name=TWITTER,
        client_id=key,
        client_secret=secret,
        request_token_url="https://api.twitter.com/oauth/request_token",
        access_token_url="https://api.twitter.com/oauth/access_token",
        authorize_url="https://api.twitter.com/oauth/authenticate",
        api_base_url="https://api.twitter.com/1.1/",
    )
    return True


def _register_facebook(oauth: OAuth, config: ConfigSource) -> bool:
    app_id = config["oauth.facebook.AppId"]
    secret = config["oauth.facebook.AppSecret"]
    if not app_id or not secret:
        return False
    scopes = config.get_list("oauth.facebook.Permissions", ["email"])
    oauth.register(
        name=FACEBOOK,
        client_id=app_id,
        client_secret=secret,
        access_token_url="https://graph.facebook.com/oauth/access_token",
        authorize_url="https://www.facebook.com/dialog/oauth",
        api_base_url="https://graph.facebook.com/",
        client_kwargs={"scope": " ".join(scopes)},
    )
    return True


def _register_google(oauth: OAuth, config: ConfigSource) -> bool:
    client_id = config["oauth.google.ConsumerKey"]
    secret = config["oauth.google.ConsumerSecret"]
    if not client_id or not secret:
        return False
    oauth.register(
        name=GOOGLE,
        client_id=client_id,
        client_secret=secret,
        server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
        client_kwargs={"scope": "openid email profile"},
    )
    return True


def _register_microsoft(oauth: OAuth, config: ConfigSource) -> bool:
    app_id = config["oauth.microsoftgraph.AppId"]
    secret = config["oauth.microsoftgraph.AppSecret"]
    if not app_id or not secret:
        return False
    oauth.register(
        name=MICROSOFT,
        client_id=app_id,
        client_secret=secret,
        server_metadata_url=(
            "https://login.microsoftonline.com/common/v2.0/.well-known/openid-configuration"
        ),
        client_kwargs={"scope": "openid email profile User.Read"},
    )
    return True


_REGISTRARS = (
    (TWITTER, _register_twitter),
    (FACEBOOK, _register_facebook),
    (GOOGLE, _register_google),
    (MICROSOFT, _register_microsoft),
)


class ProviderRegistry:
    def __init__(self, config: ConfigSource) -> None:
        self.oauth = OAuth()
        self.names: list[str] = []
        for name, register in _REGISTRARS:
            if register(self.oauth, config):
                self.names.append(name)
            else:
                logger.debug("oauth provider %s not configured", name)

    def client(self, name: str):
        if name not in self.names:
            raise UnknownProvider(name)
        return self.oauth.create_client(name)

    async def fetch_claims(self, name: str, request) -> ExternalClaims:
        client = self.client(name)
        token = await client.authorize_access_token(request)
        if name == TWITTER:
            resp = await client.get(
                "account/verify_credentials.json",
                params={"include_email": "true", "skip_status": "true"},
                token=token,
            )
            data = resp.json()
        elif name == FACEBOOK:
            resp = await client.get(
                "me",
                params={"fields": "id,name,email,first_name,last_name,picture"},
                token=token,
            )
            data = resp.json()
        else:
            data = token.get("userinfo") or await client.userinfo(token=token)
        return claims_from_userinfo(name, data)


class InvalidClaims(ValueError):
    """The provider payload cannot identify the account."""


def _subject(provider: str, data: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    raise InvalidClaims(f"{provider} profile has no subject")


def claims_from_userinfo(provider: str, data: Mapping[str, Any]) -> ExternalClaims:
    """Map a provider profile to :class:`ExternalClaims`.

    Twitter and Facebook only return confirmed addresses. OpenID providers
    must assert ``email_verified``; ``preferred_username`` is never an email.
    """
    if provider == TWITTER:
        name = data.get("name")
        first, _, last = (name or "").partition(" ")
        return ExternalClaims(
            provider=provider,
            subject=_subject(provider, data, "id_str", "id"),
            email=data.get("email"),
            first_name=first or None,
            last_name=last or None,
            display_name=name or data.get("screen_name"),
            profile_url=data.get("profile_image_url_https"),
            email_verified=bool(data.get("email")),
        )
    if provider == FACEBOOK:
        picture: Dict[str, Any] = (data.get("picture") or {}).get("data") or {}
        return ExternalClaims(
            provider=provider,
            subject=_subject(provider, data, "id"),
            email=data.get("email"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            display_name=data.get("name"),
            profile_url=picture.get("url"),
            email_verified=bool(data.get("email")),
        )
    if provider in (GOOGLE, MICROSOFT):
        return ExternalClaims(
            provider=provider,
            subject=_subject(provider, data, "sub", "oid"),
            email=data.get("email"),
            first_name=data.get("given_name"),
            last_name=data.get("family_name"),
            display_name=data.get("name"),
            profile_url=data.get("picture"),
            email_verified=bool(data.get("email")) and data.get("email_verified") is True,
        )
    raise UnknownProvider(provider)


def link_external_user(store: IdentityStore, claims: ExternalClaims) -> User:
    """Find or create the local user for ``claims`` and link the login.

    An existing account is only matched by email when the provider verified
    that email; otherwise the login gets a user of its own.
    """
    user = store.find_user_by_login(claims.provider, claims.subject)
    if user is not None:
        return user

    verified = claims.email if claims.email and claims.email_verified else None
    user = store.find_user_by_email(verified) if verified else None
    if user is None:
        email = verified or f"{claims.subject}@{claims.provider}.invalid"
        user = store.create_user(
            User(
                user_name=email,
                email=email,
                display_name=claims.display_name,
                first_name=claims.first_name,
                last_name=claims.last_name,
                profile_url=claims.profile_url,
            )
        )
        logger.info("created user %s from %s login", user.email, claims.provider)
    store.add_login(user, claims.provider, claims.subject)
    return user
