"""Per-process application context.

Everything request handlers need (settings, logger, metadata, store and
services) is built once here and reached through ``app.state.context``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from accesshub.auth.jwt_service import JWTService
from accesshub.auth.password import PasswordService
from accesshub.auth.permissions import PermissionChecker
from accesshub.auth.service import AuthService
from accesshub.config import Settings
from accesshub.core.logging import configure_logging
from accesshub.metadata import MetadataLoader
from accesshub.persistence import DatabaseConfig, DocumentStore, create_store
from accesshub.query import FilterCompiler, ListQueryExecutor, SelectionBuilder
from accesshub.services import (
    AccessPolicyService,
    EntityService,
    OrganizationService,
    PermissionService,
    UserService,
)


@dataclass
class AppContext:
    settings: Settings
    logger: logging.Logger
    metadata: MetadataLoader
    store: DocumentStore
    passwords: PasswordService
    jwt: JWTService
    permissions: PermissionChecker
    auth: AuthService
    filters: FilterCompiler
    selection: SelectionBuilder
    executor: ListQueryExecutor
    services: dict[str, EntityService] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        settings: Settings,
        store: DocumentStore | None = None,
        passwords: PasswordService | None = None,
        logger: logging.Logger | None = None,
    ) -> AppContext:
        """Wire up all components for ``settings``.

        ``store`` and ``passwords`` may be supplied to reuse an existing
        store or cheaper hashing parameters (tests).
        """
        logger = logger or configure_logging(settings)

        metadata = MetadataLoader(settings.metadata_path)
        metadata.load_all()

        if store is None:
            store = create_store(DatabaseConfig(url=settings.database_url), metadata)

        passwords = passwords or PasswordService()
        jwt_service = JWTService(settings.secret_key)
        filters = FilterCompiler(
            metadata,
            logger=logger.getChild("query.filters"),
            warn_dropped=not settings.is_production,
        )
        selection = SelectionBuilder(metadata)
        executor = ListQueryExecutor(
            store, metadata, filters, selection, logger=logger.getChild("query.executor")
        )

        common = dict(
            store=store,
            metadata=metadata,
            executor=executor,
            selection=selection,
            logger=logger.getChild("services"),
        )
        permission_service = PermissionService(**common)
        services: dict[str, EntityService] = {
            "User": UserService(passwords=passwords, **common),
            "Person": EntityService("Person", **common),
            "Organization": OrganizationService(**common),
            "Role": EntityService("Role", **common),
            "AccessPolicy": AccessPolicyService(permissions=permission_service, **common),
            "Permission": permission_service,
            "App": EntityService("App", **common),
        }

        return cls(
            settings=settings,
            logger=logger,
            metadata=metadata,
            store=store,
            passwords=passwords,
            jwt=jwt_service,
            permissions=PermissionChecker(store),
            auth=AuthService(store, metadata, passwords, jwt_service, logger=logger.getChild("auth")),
            filters=filters,
            selection=selection,
            executor=executor,
            services=services,
        )

    def close(self) -> None:
        self.store.close()
