"""
ServiceContainer - repositories and services built once per process.

Selects the document store (memory or postgres) and blob store (local or
s3) from settings, creates one repository per catalogue resource and injects
them into the services. Nothing is looked up from globals afterwards.

Usage:
    container = ServiceContainer.from_settings()
    await container.startup()
    envelope = await container.service("pronouns").get_by_id(None, "abc")
"""

from typing import Callable

from loguru import logger

from ..settings import Settings, settings
from .audit import AuditTrail
from .postgres import PostgresRepository, PostgresService
from .privacy import ProfileService
from .repositories import InMemoryRepository, Repository
from .resource_service import ResourceDefinition, ResourceService
from .resources import ACTIVITY_LOGS, ADMINS, CATALOGUE, USERS, collections
from .storage import BlobStore, LocalBlobStore, S3BlobStore

RepositoryFactory = Callable[[ResourceDefinition], Repository]


class ServiceContainer:
    """Owns every repository and service of the application."""

    def __init__(
        self,
        factory: RepositoryFactory,
        blob_store: BlobStore | None = None,
        db: PostgresService | None = None,
    ):
        self.db = db
        self.blob_store = blob_store
        self.repositories: dict[str, Repository] = {
            definition.name: factory(definition) for definition in CATALOGUE
        }

        # created_by / updated_by reference admins
        actors = self.repositories[ADMINS.name]
        for repository in self.repositories.values():
            repository.actor_source = actors

        self.audit = AuditTrail(self.repositories[ACTIVITY_LOGS.name])
        self.services: dict[str, ResourceService] = {
            definition.name: ResourceService(
                definition,
                self.repositories[definition.name],
                self.audit,
                blob_store,
            )
            for definition in CATALOGUE
        }
        self.profiles = ProfileService(self.repositories[USERS.name])

    @classmethod
    def in_memory(cls, blob_store: BlobStore | None = None) -> "ServiceContainer":
        """Container over in-memory repositories (tests, local development)."""
        return cls(
            lambda d: InMemoryRepository(d.model, d.name, unique_fields=d.unique_fields),
            blob_store=blob_store,
        )

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "ServiceContainer":
        config = config or settings

        if config.storage.blob_backend == "s3":
            blob_store: BlobStore = S3BlobStore(config.s3)
        else:
            blob_store = LocalBlobStore(config.storage.local_root)

        if config.storage.backend == "postgres":
            db = PostgresService(
                config.postgres.connection_string,
                pool_min_size=config.postgres.pool_min_size,
                pool_max_size=config.postgres.pool_max_size,
            )
            logger.info("Using Postgres document store")
            return cls(
                lambda d: PostgresRepository(
                    d.model, d.name, unique_fields=d.unique_fields, db=db
                ),
                blob_store=blob_store,
                db=db,
            )

        logger.info("Using in-memory document store")
        return cls.in_memory(blob_store)

    def service(self, name: str) -> ResourceService:
        return self.services[name]

    async def startup(self) -> None:
        if self.db:
            await self.db.connect()
            await self.db.ensure_tables(collections())

    async def shutdown(self) -> None:
        if self.db:
            await self.db.disconnect()
