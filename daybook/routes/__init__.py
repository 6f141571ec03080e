from daybook.routes.auth import router as auth_router
from daybook.routes.plans import router as plans_router
from daybook.routes.history import router as history_router

__all__ = [
    'auth_router',
    'plans_router',
    'history_router',
]
