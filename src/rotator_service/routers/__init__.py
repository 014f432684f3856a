from rotator_service.routers.completions import router as completions_router
from rotator_service.routers.keys_api import router as keys_router

__all__ = ["keys_router", "completions_router"]
