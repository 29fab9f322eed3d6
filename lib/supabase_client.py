# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides specialized methods for:
# - Agent catalog and per-company enablement
# - Company credits and the agent usage log
# - Versioned company parameters written by agents
# - Company records and membership lookups
# - Inbound email storage
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   agent = SupabaseClient.fetch_agent(agent_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

# PostgREST code for "no rows returned" on .single()
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Provides actionable error messages following the principle:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        agent = SupabaseClient.fetch_agent("550e8400-...")
        if agent and SupabaseClient.is_agent_enabled(company_id, agent["id"]):
            ...
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _fetch_single(
        cls,
        table: str,
        columns: str,
        filters: dict[str, Any],
        error_code: str,
    ) -> dict[str, Any] | None:
        """Fetch one row matching all equality filters, or None."""
        client = cls.get_client()

        try:
            query = client.table(table).select(columns)
            for column, value in filters.items():
                query = query.eq(column, value)
            response = query.single().execute()
            return response.data

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to query {table}: {e}",
                code=error_code,
                details={"table": table, "filters": filters}
            )

    # -------------------------------------------------------------------------
    # Agents
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_agent(cls, agent_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch a platform agent configuration by ID.

        Returns:
            Agent dict (agent_type, instructions, n8n_config, credits_per_use,
            ...), or None if not found
        """
        return cls._fetch_single(
            "platform_agents",
            "*",
            {"id": normalize_uuid(agent_id)},
            "FETCH_AGENT_FAILED",
        )

    @classmethod
    def is_agent_enabled(cls, company_id: str | UUID, agent_id: str | UUID) -> bool:
        """Check whether a company has enabled an agent."""
        row = cls._fetch_single(
            "company_enabled_agents",
            "id",
            {
                "company_id": normalize_uuid(company_id),
                "agent_id": normalize_uuid(agent_id),
            },
            "FETCH_ENABLED_AGENT_FAILED",
        )
        return row is not None

    # -------------------------------------------------------------------------
    # Credits
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_available_credits(cls, company_id: str | UUID) -> int | None:
        """
        Fetch a company's available credits.

        Returns:
            Credit balance, or None if the company has no credits row
        """
        row = cls._fetch_single(
            "company_credits",
            "available_credits",
            {"company_id": normalize_uuid(company_id)},
            "FETCH_CREDITS_FAILED",
        )
        if row is None:
            return None
        return row.get("available_credits") or 0

    @classmethod
    def deduct_credits(cls, company_id: str | UUID, amount: int) -> None:
        """
        Deduct credits through the deduct_company_credits RPC.

        Raises:
            SupabaseClientError: If the RPC call fails
        """
        client = cls.get_client()

        try:
            client.rpc(
                "deduct_company_credits",
                {"p_company_id": normalize_uuid(company_id), "p_amount": amount},
            ).execute()
            logger.debug(f"Deducted {amount} credits from company {company_id}")

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to deduct credits: {e}",
                code="DEDUCT_CREDITS_FAILED",
                suggestion="Verify the deduct_company_credits function exists and the balance is sufficient",
                details={"company_id": str(company_id), "amount": amount}
            )

    # -------------------------------------------------------------------------
    # Agent Usage Log
    # -------------------------------------------------------------------------

    @classmethod
    def insert_usage_log(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert an agent_usage_log row.

        Returns:
            Inserted row with generated id

        Raises:
            SupabaseClientError: If insert fails
        """
        client = cls.get_client()

        try:
            response = client.table("agent_usage_log").insert(data).execute()

            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message="Insert returned no data",
                code="INSERT_NO_DATA"
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert usage log: {e}",
                code="INSERT_USAGE_LOG_FAILED",
                details={"agent_id": data.get("agent_id")}
            )

    @classmethod
    def update_usage_log(cls, log_id: str, data: dict[str, Any]) -> None:
        """Update an agent_usage_log row by id."""
        client = cls.get_client()

        try:
            client.table("agent_usage_log").update(data).eq("id", log_id).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update usage log: {e}",
                code="UPDATE_USAGE_LOG_FAILED",
                details={"log_id": log_id}
            )

    # -------------------------------------------------------------------------
    # Company Parameters
    # -------------------------------------------------------------------------

    @classmethod
    def replace_company_parameter(
        cls,
        company_id: str | UUID,
        category: str,
        parameter_key: str,
        parameter_value: dict[str, Any],
        source_agent_code: str | None = None,
    ) -> dict[str, Any]:
        """
        Store a new current version of a company parameter.

        The previous current row for the same key is marked not-current
        before the new row is inserted.

        Raises:
            SupabaseClientError: If either write fails
        """
        client = cls.get_client()
        company_id_str = normalize_uuid(company_id)

        try:
            (
                client.table("company_parameters")
                .update({"is_current": False})
                .eq("company_id", company_id_str)
                .eq("parameter_key", parameter_key)
                .eq("is_current", True)
                .execute()
            )

            response = (
                client.table("company_parameters")
                .insert({
                    "company_id": company_id_str,
                    "category": category,
                    "parameter_key": parameter_key,
                    "parameter_value": parameter_value,
                    "source_agent_code": source_agent_code,
                    "is_current": True,
                })
                .execute()
            )
            return response.data[0] if response.data else {}

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to save parameter {parameter_key}: {e}",
                code="SAVE_PARAMETER_FAILED",
                details={"company_id": company_id_str, "parameter_key": parameter_key}
            )

    # -------------------------------------------------------------------------
    # Companies
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_primary_company_id(cls, user_id: str | UUID) -> str | None:
        """Find the company a user belongs to as primary member."""
        row = cls._fetch_single(
            "company_members",
            "company_id",
            {"user_id": normalize_uuid(user_id), "is_primary": True},
            "FETCH_COMPANY_MEMBER_FAILED",
        )
        return row.get("company_id") if row else None

    @classmethod
    def fetch_profile(cls, user_id: str | UUID) -> dict[str, Any] | None:
        return cls._fetch_single(
            "profiles",
            "*",
            {"user_id": normalize_uuid(user_id)},
            "FETCH_PROFILE_FAILED",
        )

    @classmethod
    def is_company_member(cls, company_id: str | UUID, user_id: str | UUID) -> bool:
        row = cls._fetch_single(
            "company_members",
            "user_id",
            {"company_id": normalize_uuid(company_id), "user_id": normalize_uuid(user_id)},
            "FETCH_COMPANY_MEMBER_FAILED",
        )
        return row is not None

    @classmethod
    def update_company(cls, company_id: str | UUID, data: dict[str, Any]) -> None:
        """Update columns on a companies row."""
        client = cls.get_client()

        try:
            client.table("companies").update(data).eq("id", normalize_uuid(company_id)).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update company: {e}",
                code="UPDATE_COMPANY_FAILED",
                details={"company_id": str(company_id)}
            )

    # -------------------------------------------------------------------------
    # Inbound Email
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_inbound_email_configs(cls) -> list[dict[str, Any]]:
        """Fetch all active inbound mailbox configurations."""
        client = cls.get_client()

        try:
            response = (
                client.table("company_inbound_email_config")
                .select("*")
                .eq("is_active", True)
                .execute()
            )
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch inbound email configs: {e}",
                code="FETCH_EMAIL_CONFIG_FAILED",
            )

    @classmethod
    def insert_inbound_email(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Store an inbound email.

        Raises:
            SupabaseClientError: If insert fails
        """
        client = cls.get_client()

        try:
            response = client.table("company_inbound_emails").insert(data).execute()
            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message="Insert returned no data",
                code="INSERT_NO_DATA"
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to store inbound email: {e}",
                code="INSERT_EMAIL_FAILED",
                details={"company_id": data.get("company_id")}
            )

    @classmethod
    def update_inbound_email_status(cls, email_id: str, status: str) -> None:
        client = cls.get_client()

        try:
            (
                client.table("company_inbound_emails")
                .update({"processing_status": status})
                .eq("id", email_id)
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update email status: {e}",
                code="UPDATE_EMAIL_FAILED",
                details={"email_id": email_id, "status": status}
            )
