"""
Service for assignments and notes attached to upstream resources.

Every query is scoped to the identity's owner id; a record belonging to
another extension instance behaves exactly like a missing one.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from ..constants import ResourceType
from ..context.identity import Identity
from ..context.operation_context import operation
from ..db.db_resource_models import ResourceAssignment, ResourceNote
from ..exceptions import not_found
from ..schemas.action_schemas import (
    AssignResourceInput,
    CreateNoteInput,
    UnassignResourceInput,
)
from ..schemas.resource_schemas import AssignmentRead, AssignmentSummary, NoteRead
from ..utils.crud_helpers import (
    create_record,
    delete_record,
    delete_records,
    get_record,
    list_records,
    upsert_record,
)
from .base_service import SessionManagedService

AssignmentKey = Tuple[str, str]


class ResourceService(SessionManagedService):
    """Local persistence of resource assignments and notes."""

    # Assignments

    @operation()
    def assign(self, identity: Identity, assignment_input: AssignResourceInput) -> AssignmentRead:
        """Create or replace the assignment of one resource."""
        record = upsert_record(
            self.session,
            ResourceAssignment,
            {
                "resource_type": assignment_input.resource_type.value,
                "resource_id": assignment_input.resource_id,
            },
            {
                "resource_name": assignment_input.resource_name,
                "tenant_project_id": assignment_input.tenant_project_id,
                "tenant_customer_id": assignment_input.tenant_customer_id,
                "tags": list(assignment_input.tags),
            },
            owner_id=identity.owner_id,
        )
        return AssignmentRead.model_validate(record)

    @operation()
    def unassign(self, identity: Identity, unassign_input: UnassignResourceInput) -> None:
        """
        Remove the assignment of one resource.

        Raises:
            NotFoundError: The resource has no assignment for this identity
        """
        record = get_record(
            self.session,
            ResourceAssignment,
            {
                "resource_type": unassign_input.resource_type.value,
                "resource_id": unassign_input.resource_id,
            },
            owner_id=identity.owner_id,
        )
        if record is None:
            raise not_found(
                "ResourceAssignment",
                resource_type=unassign_input.resource_type.value,
                resource_id=unassign_input.resource_id,
            )
        delete_record(self.session, ResourceAssignment, record.id, owner_id=identity.owner_id)

    def get_assignment(
        self, identity: Identity, resource_type: ResourceType, resource_id: str
    ) -> Optional[AssignmentSummary]:
        try:
            record = get_record(
                self.session,
                ResourceAssignment,
                {"resource_type": resource_type.value, "resource_id": str(resource_id)},
                owner_id=identity.owner_id,
            )
        except Exception as e:
            self._handle_service_exception("get_assignment", e, str(resource_id))
        return AssignmentSummary.model_validate(record) if record else None

    def list_assignments(
        self,
        identity: Identity,
        resource_type: Optional[ResourceType] = None,
        resource_ids: Optional[Iterable[str]] = None,
    ) -> Dict[AssignmentKey, AssignmentSummary]:
        """
        Load assignments keyed by ``(resource_type, resource_id)``.

        Args:
            identity: Caller identity
            resource_type: Restrict to one resource type
            resource_ids: Restrict to these resource ids
        """
        filters: Dict[str, object] = {}
        if resource_type is not None:
            filters["resource_type"] = resource_type.value
        if resource_ids is not None:
            filters["resource_id"] = [str(resource_id) for resource_id in resource_ids]

        try:
            records = list_records(
                self.session, ResourceAssignment, filters, owner_id=identity.owner_id
            )
        except Exception as e:
            self._handle_service_exception("list_assignments", e)

        return {
            (record.resource_type, record.resource_id): AssignmentSummary.model_validate(record)
            for record in records
        }

    def delete_assignment(
        self, identity: Identity, resource_type: ResourceType, resource_id: str
    ) -> int:
        """Delete the assignment of a resource if there is one. Returns the count deleted."""
        return delete_records(
            self.session,
            ResourceAssignment,
            {"resource_type": resource_type.value, "resource_id": str(resource_id)},
            owner_id=identity.owner_id,
        )

    # Notes

    @operation()
    def create_note(self, identity: Identity, note_input: CreateNoteInput) -> NoteRead:
        record = create_record(
            self.session,
            ResourceNote,
            {
                "resource_type": note_input.resource_type.value,
                "resource_id": note_input.resource_id,
                "note": note_input.note,
                "created_by": identity.user_id,
            },
            owner_id=identity.owner_id,
        )
        return NoteRead.model_validate(record)

    def list_notes(
        self, identity: Identity, resource_type: ResourceType, resource_id: str
    ) -> List[NoteRead]:
        """Notes of one resource, newest first."""
        try:
            records = list_records(
                self.session,
                ResourceNote,
                {"resource_type": resource_type.value, "resource_id": str(resource_id)},
                owner_id=identity.owner_id,
            )
        except Exception as e:
            self._handle_service_exception("list_notes", e, str(resource_id))
        return [NoteRead.model_validate(record) for record in records]

    @operation()
    def delete_note(self, identity: Identity, note_id: str) -> None:
        """
        Delete one note.

        Raises:
            NotFoundError: No such note for this identity
        """
        if not delete_record(self.session, ResourceNote, note_id, owner_id=identity.owner_id):
            raise not_found("ResourceNote", note_id=note_id)

    def delete_notes(self, identity: Identity, resource_type: ResourceType, resource_id: str) -> int:
        """Delete every note of a resource. Returns the count deleted."""
        return delete_records(
            self.session,
            ResourceNote,
            {"resource_type": resource_type.value, "resource_id": str(resource_id)},
            owner_id=identity.owner_id,
        )
