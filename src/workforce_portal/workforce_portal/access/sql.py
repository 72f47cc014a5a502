from __future__ import annotations

from ..core.enums import Resource
from .scoping import ScopeFilter


def scope_clause(scope: ScopeFilter, alias: str) -> tuple[str, tuple]:
    """Render ``scope`` as a SQL predicate over the table aliased ``alias``.

    Unrestricted scopes render as ``1=1`` so callers can always AND the result.
    """

    if scope.unrestricted:
        return "1=1", ()

    owner = int(scope.owner_id)
    if scope.resource == Resource.PROJECT:
        return (
            f"EXISTS (SELECT 1 FROM project_team pt WHERE pt.project_id={alias}.project_id AND pt.user_id=%s)",
            (owner,),
        )
    if scope.resource == Resource.TASK:
        return (
            f"EXISTS (SELECT 1 FROM task_assignees ta WHERE ta.task_id={alias}.task_id AND ta.user_id=%s)",
            (owner,),
        )
    if scope.resource == Resource.LEAVE:
        return f"{alias}.employee_id=%s", (owner,)
    if scope.resource == Resource.ATTENDANCE:
        return f"{alias}.user_id=%s", (owner,)
    raise ValueError(f"Unsupported resource: {scope.resource}")
