"""
Filter clause translation

하나의 논리 조건을 GraphQL 필터 객체와 REST 브래킷 필터 문자열 양쪽으로 렌더링한다.

    FilterClause(("emails", "primaryEmail"), "eq", "a@b.com")
      .to_graphql() -> {"emails": {"primaryEmail": {"eq": "a@b.com"}}}
      .to_rest()    -> 'emails.primaryEmail[eq]:"a@b.com"'
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

EQ = "eq"
LIKE = "like"
ILIKE = "ilike"

AND = "and"
OR = "or"

# "Link" 로 끝나는 필드는 { primaryLinkUrl, ... } 구조의 링크 타입
RELATION_SUFFIX = "Link"
DEFAULT_LINK_SUBFIELD = "primaryLinkUrl"

ORDER_DIRECTIONS = {
    "ASC": "AscNullsLast",
    "DESC": "DescNullsLast",
}


@dataclass(frozen=True)
class FilterClause:
    path: Tuple[str, ...]
    operator: str
    value: Any

    def to_graphql(self) -> Dict[str, Any]:
        node: Dict[str, Any] = {self.operator: self.value}
        for segment in reversed(self.path):
            node = {segment: node}
        return node

    def to_rest(self) -> str:
        value = str(self.value).replace('"', '\\"')
        return f'{".".join(self.path)}[{self.operator}]:"{value}"'


def split_path(path: str) -> Tuple[str, ...]:
    return tuple(segment for segment in path.split(".") if segment)


def equals(path: str, value: Any) -> FilterClause:
    return FilterClause(split_path(path), EQ, value)


def contains(path: str, value: str, *, case_insensitive: bool = True) -> FilterClause:
    return FilterClause(split_path(path), ILIKE if case_insensitive else LIKE, f"%{value}%")


def iequals(path: str, value: str) -> FilterClause:
    """대소문자 무시 동등 비교 (와일드카드 없는 ilike)"""
    return FilterClause(split_path(path), ILIKE, value)


def is_relation_field(field_name: str) -> bool:
    return field_name.endswith(RELATION_SUFFIX)


def custom_field_clause(resolved_field: str, sub_path: Sequence[str], value: str) -> FilterClause:
    """
    커스텀 필드 필터

    - 링크 필드(xxxLink): 하위 필드 동등 비교 (기본 primaryLinkUrl)
    - 그 외: 포함(like %value%) 비교
    """
    if is_relation_field(resolved_field):
        nested = tuple(sub_path) or (DEFAULT_LINK_SUBFIELD,)
        return FilterClause((resolved_field, *nested), EQ, value)
    return FilterClause((resolved_field, *sub_path), LIKE, f"%{value}%")


def to_graphql_filter(clauses: Sequence[FilterClause], combinator: str = AND) -> Optional[Dict[str, Any]]:
    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0].to_graphql()
    return {combinator: [clause.to_graphql() for clause in clauses]}


def to_rest_filter(clauses: Sequence[FilterClause], combinator: str = AND) -> Optional[str]:
    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0].to_rest()
    return f"{combinator}(" + ",".join(clause.to_rest() for clause in clauses) + ")"


def parse_order_by(order_by: Optional[str]) -> Optional[list]:
    """'createdAt:DESC' -> [{"createdAt": "DescNullsLast"}]"""
    if not order_by:
        return None
    field, _, direction = order_by.partition(":")
    field = field.strip()
    if not field:
        return None
    return [{field: ORDER_DIRECTIONS.get(direction.strip().upper() or "ASC", "AscNullsLast")}]
