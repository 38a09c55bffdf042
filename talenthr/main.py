import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from talenthr.core.config import settings
from talenthr.core.database import close_db, init_db
from talenthr.core.errors import register_exception_handlers
from talenthr.core.logging_config import setup_logging
from talenthr.routers import ALL_ROUTERS

setup_logging()
logger = logging.getLogger(__name__)

# routes reachable without a session
PUBLIC_PREFIXES = ("/auth", "/otp", "/invitations/validate", "/feedback")

app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)

# CORS; cookies need explicit origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# OpenAPI with bearer applied to everything except the public routes
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="HR management API. Authenticates with the access_token cookie or a Bearer JWT.",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "Bearer": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }

    public = tuple(f"{settings.API_V1_STR}{p}" for p in PUBLIC_PREFIXES)
    for path, methods in openapi_schema.get("paths", {}).items():
        if path.startswith(settings.API_V1_STR) and not path.startswith(public):
            for method in methods.values():
                method["security"] = [{"Bearer": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

api_prefix = settings.API_V1_STR
for router in ALL_ROUTERS:
    app.include_router(router, prefix=api_prefix)


@app.on_event("startup")
async def startup_event():
    await init_db()
    logger.info("%s %s started", settings.PROJECT_NAME, settings.VERSION)


@app.on_event("shutdown")
async def shutdown_event():
    close_db()


@app.get("/")
async def root():
    return {"message": "TalentHR API is up and running", "version": settings.VERSION}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
