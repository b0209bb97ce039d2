from .agents import (
    InvalidRequestError,
    get_orchestrator,
    process_coaching_request,
)
