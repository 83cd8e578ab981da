"""FastAPI dependencies for database, catalog client and customer identity."""

from collections.abc import AsyncGenerator
from typing import Optional

import jwt
from fastapi import Depends, Header, Request
from jwt import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession

from ..clients.catalog_client import CatalogClient
from ..schemas.package import EntitlementTier
from ..services.entitlement_service import EntitlementService
from .config import settings
from .database import get_async_session
from .exceptions import AuthenticationError


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database dependency that provides async database sessions.

    Yields:
        AsyncSession: Database session
    """
    async for session in get_async_session():
        yield session


def get_catalog_client(request: Request) -> CatalogClient:
    """Catalog client shared by the application."""
    return request.app.state.catalog_client


def decode_customer_token(token: str) -> str:
    """
    Decode a customer bearer token.

    Args:
        token: Encoded JWT

    Returns:
        The customer ID carried in the ``sub`` claim

    Raises:
        AuthenticationError: If the token is invalid, expired or has no subject
    """
    try:
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=["HS256"]
        )
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}") from e

    customer_id = payload.get("sub")
    if not customer_id:
        raise AuthenticationError(detail="Invalid token payload")
    return str(customer_id)


async def get_optional_customer_id(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> Optional[str]:
    """
    Customer identified by an optional Bearer token.

    Returns:
        Customer ID, or None for anonymous callers

    Raises:
        AuthenticationError: If a header is present but malformed or invalid
    """
    if not authorization:
        return None

    try:
        scheme, token = authorization.split()
    except ValueError as e:
        raise AuthenticationError(detail="Invalid authorization header format") from e

    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    return decode_customer_token(token)


async def get_customer_id(
    customer_id: Optional[str] = Depends(get_optional_customer_id)
) -> str:
    """
    Customer identified by a required Bearer token.

    Raises:
        AuthenticationError: If the caller is anonymous
    """
    if customer_id is None:
        raise AuthenticationError(detail="Authorization header missing")
    return customer_id


async def get_customer_tier(
    customer_id: Optional[str] = Depends(get_optional_customer_id),
    db: AsyncSession = Depends(get_db),
) -> EntitlementTier:
    """Entitlement tier of the caller, ``none`` when anonymous."""
    return await EntitlementService(db).get_entitlement_tier(customer_id)


DatabaseSession = Depends(get_db)
CatalogClientDependency = Depends(get_catalog_client)
OptionalCustomer = Depends(get_optional_customer_id)
RequiredCustomer = Depends(get_customer_id)
CustomerTier = Depends(get_customer_tier)
