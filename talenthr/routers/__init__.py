# talenthr/routers/__init__.py
from .auth import auth_router
from .users import users_router
from .otp import router as otp_router
from .settings import router as settings_router
from .employees import router as employees_router
from .departments import router as departments_router
from .attendance import router as attendance_router
from .leave_types import router as leave_types_router
from .leaves import router as leaves_router
from .invitations import router as invitations_router
from .jobs import router as jobs_router
from .candidates import router as candidates_router
from .interviews import router as interviews_router
from .goals import router as goals_router
from .reviews import router as reviews_router
from .profile import router as profile_router
from .reports import router as reports_router
from .seed import router as seed_router
from .listings import router as listings_router
from .categories import router as categories_router
from .feedback import router as feedback_router

ALL_ROUTERS = [
    auth_router,
    otp_router,
    users_router,
    settings_router,
    employees_router,
    departments_router,
    attendance_router,
    leave_types_router,
    leaves_router,
    invitations_router,
    jobs_router,
    candidates_router,
    interviews_router,
    goals_router,
    reviews_router,
    profile_router,
    reports_router,
    seed_router,
    listings_router,
    categories_router,
    feedback_router,
]
