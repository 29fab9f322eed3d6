# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# HTTP surface of the Buildera orchestration service:
# - main.py: App entry point, middleware, exception handlers, routers
# - config.py: Settings from environment / .env
# - exceptions.py: Error codes → HTTP status mapping
# - auth/: Supabase JWT verification
# - routers/: Agents, edge functions, companies, webhooks, health
#
# Routers stay thin; agent runs live in agents/, services in core/.
# =============================================================================
