# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Signup/login happen client-side through Supabase Auth.
# These routes resolve the caller's identity, profile and subscription.
# =============================================================================

import logging

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials

from app.auth.dependencies import get_current_user, security
from app.auth.models import AuthUser, UserResponse
from lib.edge_functions import EdgeFunctionResponse
from lib.edge_functions.business import check_subscription_status
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> UserResponse:
    """
    Get the current user's profile.

    Raises:
        401: If not authenticated
    """
    try:
        profile = SupabaseClient.fetch_profile(user.id)
    except SupabaseClientError as e:
        logger.warning(f"Could not fetch profile for {user.id}: {e}")
        profile = None

    if profile:
        return UserResponse(
            id=user.id,
            email=profile.get("email") or user.email,
            full_name=profile.get("full_name"),
            avatar_url=profile.get("avatar_url"),
            primary_company_id=profile.get("primary_company_id"),
            created_at=profile.get("created_at"),
            updated_at=profile.get("updated_at"),
        )

    # Signed up but the profile trigger hasn't run yet
    return UserResponse(id=user.id, email=user.email)


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Check that a stored token is still valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email,
    }


@router.get("/subscription", response_model=EdgeFunctionResponse)
def get_subscription(
    user: AuthUser = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> EdgeFunctionResponse:
    """Current user's subscription, checked with their own token."""
    return check_subscription_status(credentials.credentials, str(user.id))
