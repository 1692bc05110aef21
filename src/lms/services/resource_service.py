"""
ResourceService - generic CRUD shared by every catalogue resource.

One instance per resource, configured by a ResourceDefinition (model,
collection, unique fields, query key mapping, expansion, image policy and
access policy) and wired to injected collaborators:

    service = ResourceService(
        definition=TRANSLATORS,
        repository=InMemoryRepository(Translator, "translators", unique_fields=("name",)),
        audit=AuditTrail(activity_log_repository),
        blob_store=LocalBlobStore(".lms/blobs"),
    )
    envelope = await service.get_list(None, QueryRequest(name="rah"))

Contract:
- every operation returns an Envelope, exceptions never escape
- mutations append exactly one ActivityLog entry (bulk deletes one per batch)
- blob cleanup is best-effort: failures are logged as warnings and never
  block the record mutation; the record is always removed last
- empty list results are success=False with status 200, not errors
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Any, Mapping, Type

from loguru import logger
from pydantic import ValidationError

from ..models.core import (
    CoreModel,
    DeletionSummary,
    Envelope,
    ErrorKind,
    PaginatedResult,
    Requester,
    UploadedFile,
    error_response,
    success_response,
)
from ..models.entities import ActionType
from ..utils.date_utils import utc_now
from ..utils.text import to_sentence_case
from .audit import AuditTrail
from .errors import (
    BlobStoreError,
    DuplicateKeyError,
    FileValidationError,
    describe_validation_error,
)
from .query import Expand, QueryFilter, QueryRequest, build_query
from .repositories import Repository
from .storage import BlobStore, ImagePolicy, validate_file

# Set by the service, never by clients
PROTECTED_FIELDS = frozenset(
    {"id", "created_at", "updated_at", "created_by", "updated_by", "image"}
)

# Additionally locked when a requester edits their own record
SELF_PROTECTED_FIELDS = frozenset({"is_active"})


class Access(str, Enum):
    """Who may perform a class of operations on a resource."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"
    NOBODY = "nobody"


@dataclass(frozen=True)
class ResourcePolicy:
    read: Access = Access.PUBLIC
    write: Access = Access.ADMIN


@dataclass(frozen=True)
class ResourceDefinition:
    """Static description of one catalogue resource."""

    name: str  # collection and route segment, e.g. "translators"
    model: Type[CoreModel]
    type_name: str  # singular label for messages, e.g. "translator"
    unique_fields: tuple[str, ...] = ()
    field_mapping: Mapping[str, str] = field(default_factory=dict)
    expand: Expand = Expand.ACTORS
    image_policy: ImagePolicy | None = None
    policy: ResourcePolicy = ResourcePolicy()

    @property
    def label(self) -> str:
        return to_sentence_case(self.type_name)


class ResourceService:
    """Generic resource operations over one repository."""

    def __init__(
        self,
        definition: ResourceDefinition,
        repository: Repository,
        audit: AuditTrail,
        blob_store: BlobStore | None = None,
    ):
        self.definition = definition
        self.repository = repository
        self.audit = audit
        self.blob_store = blob_store

    # -- helpers ------------------------------------------------------------

    def _authorize(
        self, requester: Requester | None, access: Access, verb: str
    ) -> Envelope | None:
        """None when allowed, otherwise the rejection envelope."""
        name = self.definition.name.replace("_", " ")
        if access is Access.PUBLIC:
            return None
        if access is Access.NOBODY:
            return error_response(
                f"{to_sentence_case(name)} cannot be modified.",
                HTTPStatus.METHOD_NOT_ALLOWED,
                ErrorKind.FORBIDDEN,
            )
        if requester is None:
            return error_response(
                f"Authentication is required to {verb} {name}.",
                HTTPStatus.UNAUTHORIZED,
                ErrorKind.UNAUTHORIZED,
            )
        if access is Access.ADMIN and not requester.is_admin:
            return error_response(
                f"You are not authorized to {verb} {name}.",
                HTTPStatus.FORBIDDEN,
                ErrorKind.FORBIDDEN,
            )
        return None

    def _failure(self, verb: str) -> Envelope:
        logger.exception(f"Failed to {verb} {self.definition.type_name}")
        return error_response(
            f"Failed to {verb} {self.definition.type_name}.",
            HTTPStatus.INTERNAL_SERVER_ERROR,
            ErrorKind.INTERNAL,
        )

    def _not_found(self) -> Envelope:
        return error_response(
            f"{self.definition.label} not found.",
            HTTPStatus.NOT_FOUND,
            ErrorKind.NOT_FOUND,
        )

    def _conflict(self, field_name: str, value: Any) -> Envelope:
        return error_response(
            f'{self.definition.label} {field_name} "{value}" already exists.',
            HTTPStatus.BAD_REQUEST,
            ErrorKind.CONFLICT,
        )

    def _invalid(self, message: str) -> Envelope:
        return error_response(message, HTTPStatus.BAD_REQUEST, ErrorKind.VALIDATION)

    @staticmethod
    def _strip(data: Mapping[str, Any], protected: frozenset[str]) -> dict[str, Any]:
        return {k: v for k, v in dict(data or {}).items() if k not in protected}

    @staticmethod
    def _image_id(record: Any) -> str | None:
        image = getattr(record, "image", None)
        return getattr(image, "file_id", None) if image else None

    async def _discard_blob(self, file_id: str) -> None:
        """Best-effort blob removal; failures are logged, never raised."""
        if self.blob_store is None:
            logger.warning(f"No blob store configured, orphaning {file_id}")
            return
        try:
            await self.blob_store.delete_file(file_id)
        except Exception as e:
            logger.warning(
                f"Failed to delete blob {file_id} for {self.definition.type_name}: {e}"
            )

    async def _find_conflict(
        self, payload: Mapping[str, Any], exclude_id: str | None = None
    ) -> Envelope | None:
        for name in self.definition.unique_fields:
            value = payload.get(name)
            if value is None:
                continue
            existing = await self.repository.find_one(QueryFilter.equals(**{name: value}))
            if existing is not None and existing.id != exclude_id:
                return self._conflict(name, value)
        return None

    async def _upload(self, file: UploadedFile) -> Any:
        """Validate and store an upload; returns ImageRef or a rejection Envelope."""
        policy = self.definition.image_policy
        if policy is None or self.blob_store is None:
            return self._invalid(f"{self.definition.label} does not accept images.")
        try:
            validate_file(file, policy)
        except FileValidationError as e:
            return self._invalid(str(e))
        try:
            return await self.blob_store.upload_file(file, folder=self.definition.name)
        except BlobStoreError:
            logger.exception(f"Image upload failed for {self.definition.type_name}")
            return error_response(
                "Failed to upload image.",
                HTTPStatus.INTERNAL_SERVER_ERROR,
                ErrorKind.DEPENDENCY,
            )

    # -- reads --------------------------------------------------------------

    async def _get(self, record_id: str) -> Envelope:
        try:
            record = await self.repository.get_by_id(record_id)
            if record is None:
                return self._not_found()
            [record] = await self.repository.expand([record], self.definition.expand)
            return success_response(record, f"{self.definition.label} fetched successfully.")
        except Exception:
            return self._failure("get")

    async def get_by_id(self, requester: Requester | None, record_id: str) -> Envelope:
        denied = self._authorize(requester, self.definition.policy.read, "view")
        if denied:
            return denied
        return await self._get(record_id)

    async def get_by_requester(self, requester: Requester | None) -> Envelope:
        """The requester's own record, regardless of the read policy."""
        if requester is None:
            return self._authorize(None, Access.AUTHENTICATED, "view")
        return await self._get(requester.id)

    async def get_list(self, requester: Requester | None, query: QueryRequest) -> Envelope:
        """
        One page of records matching the query's filters.

        Zero matches returns success=False with status 200 and an empty page.
        """
        denied = self._authorize(requester, self.definition.policy.read, "view")
        if denied:
            return denied

        name = self.definition.name.replace("_", " ")
        try:
            built = build_query(query.to_params(), self.definition.field_mapping)
            total = await self.repository.count(built.filter)
            records = await self.repository.find(
                built.filter,
                sort=built.sort_keys,
                offset=built.offset,
                limit=built.limit,
            )
            records = await self.repository.expand(records, self.definition.expand)

            page = PaginatedResult(
                items=records,
                total_items=total,
                total_pages=math.ceil(total / built.limit),
                current_page=built.page,
                page_size=built.limit,
                sort=built.sort,
            )
            if not records:
                return error_response(
                    f"No {name} found.", HTTPStatus.OK, ErrorKind.NOT_FOUND, data=page
                )
            return success_response(page, f"{len(records)} {name} fetched successfully.")
        except Exception:
            return self._failure("get")

    # -- writes -------------------------------------------------------------

    async def create(
        self,
        requester: Requester | None,
        data: Mapping[str, Any],
        file: UploadedFile | None = None,
    ) -> Envelope:
        denied = self._authorize(requester, self.definition.policy.write, "create")
        if denied:
            return denied

        image = None
        try:
            payload = self._strip(data, PROTECTED_FIELDS)
            conflict = await self._find_conflict(payload)
            if conflict:
                return conflict

            try:
                record = self.definition.model.model_validate(
                    {**payload, "created_by": requester.id, "updated_by": requester.id}
                )
            except ValidationError as e:
                return self._invalid(describe_validation_error(e))

            if file is not None:
                uploaded = await self._upload(file)
                if isinstance(uploaded, Envelope):
                    return uploaded
                image = uploaded
                record = record.model_copy(update={"image": image})

            try:
                saved = await self.repository.create(record)
            except DuplicateKeyError as e:
                if image:
                    await self._discard_blob(image.file_id)
                return self._conflict(e.field, e.value)

            await self.audit.record(
                requester,
                ActionType.CREATE,
                f"{self.definition.label} created successfully.",
                details=saved,
                affected_ids=[saved.id],
            )
            logger.info(f"Created {self.definition.type_name} {saved.id}")
            return success_response(
                saved, f"{self.definition.label} created successfully.", HTTPStatus.CREATED
            )
        except Exception:
            return self._failure("create")

    async def _update(
        self,
        requester: Requester,
        record_id: str,
        data: Mapping[str, Any],
        file: UploadedFile | None,
        protected: frozenset[str],
    ) -> Envelope:
        payload = self._strip(data, protected)
        if not payload and file is None:
            return self._invalid("Please provide update data.")

        image = None
        try:
            current = await self.repository.get_by_id(record_id)
            if current is None:
                return self._not_found()

            conflict = await self._find_conflict(payload, exclude_id=current.id)
            if conflict:
                return conflict

            merged = {
                **self.repository.to_document(current),
                **payload,
                "updated_by": requester.id,
                "updated_at": utc_now(),
            }
            try:
                updated = self.definition.model.model_validate(merged)
            except ValidationError as e:
                return self._invalid(describe_validation_error(e))

            if file is not None:
                uploaded = await self._upload(file)
                if isinstance(uploaded, Envelope):
                    return uploaded
                image = uploaded
                updated = updated.model_copy(update={"image": image})

            changes = self.repository.to_document(updated)
            for key in ("id", "created_at", "created_by"):
                changes.pop(key, None)

            try:
                saved = await self.repository.update_by_id(current.id, changes)
            except DuplicateKeyError as e:
                if image:
                    await self._discard_blob(image.file_id)
                return self._conflict(e.field, e.value)
            if saved is None:
                if image:
                    await self._discard_blob(image.file_id)
                return self._not_found()

            old_image = self._image_id(current)
            if image and old_image and old_image != image.file_id:
                await self._discard_blob(old_image)

            await self.audit.record(
                requester,
                ActionType.UPDATE,
                f"{self.definition.label} updated successfully.",
                details=saved,
                affected_ids=[saved.id],
            )
            logger.info(f"Updated {self.definition.type_name} {saved.id}")
            return success_response(saved, f"{self.definition.label} updated successfully.")
        except Exception:
            return self._failure("update")

    async def update_by_id(
        self,
        requester: Requester | None,
        record_id: str,
        data: Mapping[str, Any],
        file: UploadedFile | None = None,
    ) -> Envelope:
        denied = self._authorize(requester, self.definition.policy.write, "update")
        if denied:
            return denied
        return await self._update(requester, record_id, data, file, PROTECTED_FIELDS)

    async def update_by_requester(
        self,
        requester: Requester | None,
        data: Mapping[str, Any],
        file: UploadedFile | None = None,
    ) -> Envelope:
        """Update the requester's own record, regardless of the write policy."""
        if requester is None:
            return self._authorize(None, Access.AUTHENTICATED, "update")
        return await self._update(
            requester, requester.id, data, file, PROTECTED_FIELDS | SELF_PROTECTED_FIELDS
        )

    async def delete_by_id(self, requester: Requester | None, record_id: str) -> Envelope:
        """
        Delete one record.

        The record's image is removed first (best-effort), then the record,
        then one DELETE entry is appended to the audit trail.
        """
        denied = self._authorize(requester, self.definition.policy.write, "delete")
        if denied:
            return denied

        try:
            record = await self.repository.get_by_id(record_id)
            if record is None:
                return self._not_found()

            file_id = self._image_id(record)
            if file_id:
                await self._discard_blob(file_id)

            deleted = await self.repository.delete_by_id(record.id)
            if deleted is None:
                return self._not_found()

            message = f"{self.definition.label} deleted successfully."
            await self.audit.record(
                requester,
                ActionType.DELETE,
                message,
                details=deleted,
                affected_ids=[deleted.id],
            )
            logger.info(f"Deleted {self.definition.type_name} {deleted.id}")
            return success_response({}, message)
        except Exception:
            return self._failure("delete")

    async def delete_by_list(self, requester: Requester | None, ids: list[str]) -> Envelope:
        """
        Delete several records in one batch.

        Returns a DeletionSummary where failed = requested - deleted - not_found.
        Duplicate ids count once. When nothing was deleted the envelope is
        success=False but the status stays 200.
        """
        denied = self._authorize(requester, self.definition.policy.write, "delete")
        if denied:
            return denied

        requested = list(dict.fromkeys(str(i).strip() for i in ids if str(i).strip()))
        if not requested:
            return self._invalid("Please provide ids to delete.")

        try:
            found = {r.id: r for r in await self.repository.get_by_ids(requested)}
            existing = [found[i] for i in requested if i in found]
            not_found = len(requested) - len(existing)

            # Blobs go first and one at a time; the bulk delete is the last step
            for record in existing:
                file_id = self._image_id(record)
                if file_id:
                    await self._discard_blob(file_id)

            deleted = await self.repository.delete_many([r.id for r in existing])
            summary = DeletionSummary(
                deleted=deleted,
                not_found=not_found,
                failed=len(requested) - deleted - not_found,
            )
            message = (
                f"Deleted {summary.deleted}: Not found {summary.not_found}, "
                f"Failed {summary.failed}"
            )

            await self.audit.record(
                requester,
                ActionType.DELETE,
                f"{to_sentence_case(self.definition.name.replace('_', ' '))} deleted: {message}",
                details=summary,
                affected_ids=[r.id for r in existing],
            )
            logger.info(f"Bulk delete of {self.definition.name}: {message}")

            if summary.deleted <= 0:
                return error_response(message, HTTPStatus.OK, ErrorKind.NOT_FOUND, data=summary)
            return success_response(summary, message)
        except Exception:
            return self._failure("delete")
