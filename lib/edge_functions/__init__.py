# =============================================================================
# lib/edge_functions/ - Supabase Edge Function Client
# =============================================================================
# - core.py: Invocation wrapper (retry/backoff, TTL cache, batch)
# - types.py: Options and the uniform {data, error} response shape
# - ai.py / business.py: Named helpers for the platform's function catalog
# =============================================================================

from lib.edge_functions.core import (
    EdgeFunctionClient,
    ResponseCache,
    backoff_delay,
    batch_invoke_edge_functions,
    clear_edge_function_cache,
    close_edge_function_client,
    get_edge_function_client,
    invoke_edge_function,
    make_cache_key,
)
from lib.edge_functions.types import (
    FUNCTION_NAME_PATTERN,
    BatchRequest,
    EdgeFunctionError,
    EdgeFunctionResponse,
    InvokeOptions,
)

__all__ = [
    "EdgeFunctionClient",
    "ResponseCache",
    "backoff_delay",
    "batch_invoke_edge_functions",
    "clear_edge_function_cache",
    "close_edge_function_client",
    "get_edge_function_client",
    "invoke_edge_function",
    "make_cache_key",
    "FUNCTION_NAME_PATTERN",
    "BatchRequest",
    "EdgeFunctionError",
    "EdgeFunctionResponse",
    "InvokeOptions",
]
