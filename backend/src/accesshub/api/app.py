"""FastAPI application."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from accesshub import __version__
from accesshub.api import schemas
from accesshub.api.access import create_access_router
from accesshub.api.entities import create_entity_router
from accesshub.api.envelope import success
from accesshub.api.errors import register_error_handlers
from accesshub.auth.endpoints import create_auth_router
from accesshub.auth.middleware import AuthMiddleware
from accesshub.auth.password import PasswordService
from accesshub.config import Settings
from accesshub.core.context import AppContext
from accesshub.persistence import DocumentStore

# (url path, entity, create body, update body)
ENTITY_ROUTES = [
    ("users", "User", schemas.UserCreate, schemas.UserUpdate),
    ("persons", "Person", schemas.PersonCreate, schemas.PersonUpdate),
    ("organizations", "Organization", schemas.OrganizationCreate, schemas.OrganizationUpdate),
    ("roles", "Role", schemas.RoleCreate, schemas.RoleUpdate),
    ("access-policies", "AccessPolicy", schemas.AccessPolicyCreate, schemas.AccessPolicyUpdate),
    ("permissions", "Permission", schemas.PermissionCreate, schemas.PermissionUpdate),
    ("apps", "App", schemas.AppCreate, schemas.AppUpdate),
]


def create_app(
    settings: Settings | None = None,
    *,
    store: DocumentStore | None = None,
    passwords: PasswordService | None = None,
) -> FastAPI:
    """Build the API for ``settings`` (read from the environment when omitted)."""
    settings = settings or Settings.from_env()
    context = AppContext.build(settings, store=store, passwords=passwords)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        context.logger.info(
            "AccessHub API starting (env=%s, entities=%d)",
            settings.environment,
            len(context.metadata.list_entities()),
        )
        yield
        context.close()

    app = FastAPI(title="AccessHub API", version=__version__, lifespan=lifespan)
    app.state.context = context

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_middleware(AuthMiddleware, jwt_service=context.jwt, cookie_name=settings.cookie_name)

    register_error_handlers(app)

    app.include_router(create_auth_router(context.auth, settings))
    # Before the entity routers so /api/permissions/check is not taken as an id
    app.include_router(
        create_access_router(context.services["AccessPolicy"], context.permissions)
    )
    for path, entity, create_model, update_model in ENTITY_ROUTES:
        app.include_router(
            create_entity_router(path, context.services[entity], create_model, update_model)
        )

    @app.get("/api/health")
    def health() -> Any:
        return success("Service is healthy", {"version": __version__})

    @app.get("/api/metadata")
    def list_entities() -> Any:
        """List the entities the API serves."""
        entities = []
        for name in context.metadata.list_entities():
            entity = context.metadata.require_entity(name)
            entities.append({
                "name": entity.name,
                "displayName": entity.display_name,
                "pluralName": entity.plural_name,
                "dataKey": entity.data_key,
            })
        return success("Metadata retrieved successfully", {"entities": entities})

    return app
