"""JSON encoding of resolved views for the shared cache tier.

Each ResultKind has a fixed JSON shape:
    PERMISSIONS        [["Course", "Create"], ...]        (sorted)
    PERMISSION_MATRIX  {"Course": ["Create", "Update"]}   (sorted actions)
    ROLE_MATRIX        {"Instructor": ["Course:Create"]}
    MENU_TREE          [{"menu": {...}, "children": [...]}, ...]

Decoding rebuilds the same immutable values the resolver produces, so a
shared-tier hit is indistinguishable from a fresh resolution.
"""

import json
from typing import Any

from accessgate.core.enums import ErrorCode
from accessgate.core.result import Failure, Result, Success
from accessgate.domain.entities import Menu, MenuNode, PermissionKey
from accessgate.domain.enums import ResultKind
from accessgate.infrastructure.enums import InfrastructureErrorCode
from accessgate.infrastructure.errors import CacheError


def encode(kind: ResultKind, value: Any) -> str:
    """Serialize a resolved view.

    Args:
        kind: Result kind of the value.
        value: Resolved value.

    Returns:
        str: JSON document.
    """
    match kind:
        case ResultKind.PERMISSIONS:
            payload: Any = sorted([key.resource, key.action] for key in value)
        case ResultKind.PERMISSION_MATRIX:
            payload = {resource: sorted(actions) for resource, actions in value.items()}
        case ResultKind.ROLE_MATRIX:
            payload = {role: list(names) for role, names in value.items()}
        case ResultKind.MENU_TREE:
            payload = [_node_to_json(node) for node in value]
    return json.dumps(payload, separators=(",", ":"))


def decode(kind: ResultKind, raw: str) -> Result[Any, CacheError]:
    """Deserialize a resolved view.

    Args:
        kind: Expected result kind.
        raw: JSON document from the shared tier.

    Returns:
        Result with the rebuilt value, or CacheError for malformed documents.
    """
    try:
        payload = json.loads(raw)
        match kind:
            case ResultKind.PERMISSIONS:
                value: Any = frozenset(
                    PermissionKey(resource, action) for resource, action in payload
                )
            case ResultKind.PERMISSION_MATRIX:
                value = {
                    resource: frozenset(actions)
                    for resource, actions in payload.items()
                }
            case ResultKind.ROLE_MATRIX:
                value = {role: tuple(names) for role, names in payload.items()}
            case ResultKind.MENU_TREE:
                value = tuple(_node_from_json(node) for node in payload)
        return Success(value=value)
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        return Failure(
            error=CacheError(
                code=ErrorCode.CACHE_DECODE_FAILED,
                infrastructure_code=InfrastructureErrorCode.CACHE_DECODE_ERROR,
                message=f"Failed to decode cached {kind.value}",
                details={"kind": kind.value, "error": str(e)},
            )
        )


def _node_to_json(node: MenuNode) -> dict[str, Any]:
    menu = node.menu
    return {
        "menu": {
            "id": menu.id,
            "name": menu.name,
            "parent_id": menu.parent_id,
            "sort_order": menu.sort_order,
            "module": menu.module,
            "url": menu.url,
            "icon": menu.icon,
            "is_active": menu.is_active,
        },
        "children": [_node_to_json(child) for child in node.children],
    }


def _node_from_json(payload: dict[str, Any]) -> MenuNode:
    return MenuNode(
        Menu(**payload["menu"]),
        tuple(_node_from_json(child) for child in payload["children"]),
    )
