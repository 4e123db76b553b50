# GraphQL query/mutation builders for Twenty CRM record operations

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from twenty_connector.core.errors import InvalidInputError

INTROSPECT_TYPE_QUERY = """
query IntrospectType($name: String!) {
  __type(name: $name) {
    name
    fields {
      name
    }
  }
}
"""

_LINK = "{ primaryLinkUrl }"
_NAME = "{ firstName lastName }"
_AMOUNT = "{ amountMicros currencyCode }"
_BODY = "{ markdown }"
_ADDRESS = "{ addressStreet1 addressStreet2 addressCity addressPostcode addressState addressCountry }"


@dataclass(frozen=True)
class EntityKind:
    """GraphQL naming for one Twenty object (Person -> people, createPerson, ...)."""

    key: str
    type_name: str
    collection: str
    fields: str
    related_fields: str = ""
    label_field: Optional[str] = None

    @property
    def plural_type(self) -> str:
        return self.collection[0].upper() + self.collection[1:]

    @property
    def single(self) -> str:
        return self.type_name[0].lower() + self.type_name[1:]

    def selection(self, include_related: bool = False) -> str:
        if include_related and self.related_fields:
            return f"{self.fields}\n{self.related_fields}"
        return self.fields


ENTITY_KINDS: Dict[str, EntityKind] = {
    "person": EntityKind(
        key="person",
        type_name="Person",
        collection="people",
        fields=(
            f"id name {_NAME} emails {{ primaryEmail additionalEmails }} "
            "phones { primaryPhoneNumber primaryPhoneCountryCode primaryPhoneCallingCode } "
            f"jobTitle city avatarUrl position companyId linkedinLink {_LINK} xLink {_LINK} "
            "createdAt updatedAt"
        ),
        related_fields=f"company {{ id name domainName {_LINK} }}",
    ),
    "company": EntityKind(
        key="company",
        type_name="Company",
        collection="companies",
        fields=(
            f"id name domainName {_LINK} address {_ADDRESS} employees "
            f"annualRecurringRevenue {_AMOUNT} linkedinLink {_LINK} xLink {_LINK} "
            "accountOwnerId createdAt updatedAt"
        ),
        related_fields=(
            f"people {{ edges {{ node {{ id name {_NAME} emails {{ primaryEmail }} position jobTitle }} }} }} "
            f"opportunities {{ edges {{ node {{ id name stage amount {_AMOUNT} closeDate }} }} }}"
        ),
        label_field="name",
    ),
    "opportunity": EntityKind(
        key="opportunity",
        type_name="Opportunity",
        collection="opportunities",
        fields=(
            f"id name amount {_AMOUNT} closeDate stage position companyId pointOfContactId "
            "createdAt updatedAt"
        ),
        related_fields=(
            f"company {{ id name }} pointOfContact {{ id name {_NAME} emails {{ primaryEmail }} }}"
        ),
        label_field="name",
    ),
    "note": EntityKind(
        key="note",
        type_name="Note",
        collection="notes",
        fields=f"id title bodyV2 {_BODY} createdAt updatedAt",
        label_field="title",
    ),
    "task": EntityKind(
        key="task",
        type_name="Task",
        collection="tasks",
        fields=f"id title bodyV2 {_BODY} dueAt status position assigneeId createdAt updatedAt",
        related_fields=(
            f"assignee {{ id name {_NAME} }} "
            "taskTargets { edges { node { id personId companyId opportunityId } } }"
        ),
        label_field="title",
    ),
    "noteTarget": EntityKind(
        key="noteTarget",
        type_name="NoteTarget",
        collection="noteTargets",
        fields="id noteId personId companyId opportunityId",
        related_fields=f"note {{ id title bodyV2 {_BODY} createdAt updatedAt }}",
    ),
    "taskTarget": EntityKind(
        key="taskTarget",
        type_name="TaskTarget",
        collection="taskTargets",
        fields="id taskId personId companyId opportunityId",
    ),
    "workspaceMember": EntityKind(
        key="workspaceMember",
        type_name="WorkspaceMember",
        collection="workspaceMembers",
        fields=f"id name {_NAME} userEmail",
    ),
}


def get_kind(key: str) -> EntityKind:
    try:
        return ENTITY_KINDS[key]
    except KeyError:
        raise InvalidInputError(f"Unknown entity kind: {key}") from None


def build_find_query(kind: EntityKind, include_related: bool = False) -> str:
    return f"""
query Find{kind.plural_type}($filter: {kind.type_name}FilterInput, $first: Int, $orderBy: [{kind.type_name}OrderByInput]) {{
  {kind.collection}(filter: $filter, first: $first, orderBy: $orderBy) {{
    totalCount
    pageInfo {{ hasNextPage }}
    edges {{
      node {{
        {kind.selection(include_related)}
      }}
    }}
  }}
}}
"""


def build_get_query(kind: EntityKind, include_related: bool = False) -> str:
    return f"""
query Get{kind.type_name}($filter: {kind.type_name}FilterInput!) {{
  {kind.single}(filter: $filter) {{
    {kind.selection(include_related)}
  }}
}}
"""


def build_create_mutation(kind: EntityKind) -> str:
    return f"""
mutation Create{kind.type_name}($data: {kind.type_name}CreateInput!) {{
  create{kind.type_name}(data: $data) {{
    {kind.fields}
  }}
}}
"""


def build_update_mutation(kind: EntityKind) -> str:
    return f"""
mutation Update{kind.type_name}($id: UUID!, $data: {kind.type_name}UpdateInput!) {{
  update{kind.type_name}(id: $id, data: $data) {{
    {kind.fields}
  }}
}}
"""


def build_delete_mutation(kind: EntityKind) -> str:
    return f"""
mutation Delete{kind.type_name}($id: UUID!) {{
  delete{kind.type_name}(id: $id) {{
    id
  }}
}}
"""


def connection_nodes(value: Any) -> List[dict]:
    """Flatten a GraphQL connection ({edges: [{node}]}) or plain list into nodes."""
    if not value:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [edge.get("node") for edge in value.get("edges") or [] if edge.get("node")]
    return []
