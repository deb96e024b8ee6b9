"""Drag-and-drop and tree endpoints for the rendering layer."""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from coursetree.engine import ReorderEngine
from coursetree.exceptions import CourseTreeError, FetchError, NodeNotFoundError
from coursetree.output_formatter import format_tree
from coursetree.schemas import Node, NodeKind, NodeRef, ScopeKey
from server.models import (
    DragStateOut,
    DropResponse,
    HoverResponse,
    NodeIdRequest,
    NodeOut,
    ScopeOut,
    TreeOut,
)

router = APIRouter(prefix="/api")


def get_engine(request: Request) -> ReorderEngine:
    """Return the engine owned by the running application."""
    return request.app.state.engine


def _http_error(exc: CourseTreeError) -> HTTPException:
    if isinstance(exc, NodeNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, FetchError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _scope_out(engine: ReorderEngine, scope_key: ScopeKey) -> ScopeOut:
    return ScopeOut(scope=str(scope_key), nodes=[NodeOut.from_node(n) for n in engine.scope_of(scope_key)])


@router.get("/tree")
async def get_tree(engine: ReorderEngine = Depends(get_engine)) -> TreeOut:
    """Return every node of the tree and a text rendering of it."""
    return TreeOut(nodes=[NodeOut.from_node(n) for n in engine.tree], text=format_tree(engine.tree))


@router.get("/scopes/{kind}")
async def get_scope(
    kind: NodeKind,
    parent: str | None = None,
    engine: ReorderEngine = Depends(get_engine),
) -> ScopeOut:
    """Return one sibling scope.

    **Path Parameters**
    - **kind** (`NodeKind`): kind of the nodes in the scope

    **Query Parameters**
    - **parent** (`str`, optional): parent node id; omit for modules
    """
    try:
        parent_ref = NodeRef.parse(parent) if parent else None
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _scope_out(engine, ScopeKey(kind, parent_ref))


@router.post("/modules/{pk}/load")
async def load_module(pk: int, engine: ReorderEngine = Depends(get_engine)) -> TreeOut:
    """Fetch a module detail view through the read cache and replace its subtree."""
    try:
        module = await engine.load_module(pk)
    except CourseTreeError as exc:
        raise _http_error(exc) from exc
    nodes = [module, *_descendants(engine, module.id)]
    return TreeOut(nodes=[NodeOut.from_node(n) for n in nodes], text=format_tree(engine.tree, [module]))


@router.get("/drag")
async def get_drag_state(engine: ReorderEngine = Depends(get_engine)) -> DragStateOut:
    session = engine.controller.session
    if session is None:
        return DragStateOut(state=engine.drag_state)
    return DragStateOut(
        state=engine.drag_state,
        dragged_id=str(session.dragged_id),
        hover_id=str(session.hover_id) if session.hover_id else None,
        scope=str(session.fingerprint),
    )


@router.post("/drag/start")
async def start_drag(body: NodeIdRequest, engine: ReorderEngine = Depends(get_engine)) -> DragStateOut:
    try:
        engine.start_drag(body.node_id)
    except CourseTreeError as exc:
        raise _http_error(exc) from exc
    return await get_drag_state(engine)


@router.post("/drag/hover")
async def hover(body: NodeIdRequest, engine: ReorderEngine = Depends(get_engine)) -> HoverResponse:
    try:
        return HoverResponse(accepted=engine.hover(body.node_id))
    except CourseTreeError as exc:
        raise _http_error(exc) from exc


@router.post("/drag/drop")
async def drop(body: NodeIdRequest, engine: ReorderEngine = Depends(get_engine)) -> DropResponse:
    """Drop the dragged node onto ``node_id``.

    The returned scope already reflects the new order; order updates keep
    running after the response is sent.
    """
    try:
        outcome = engine.drop(body.node_id)
    except CourseTreeError as exc:
        raise _http_error(exc) from exc
    if outcome is None:
        return DropResponse(accepted=False)
    return DropResponse(
        accepted=True,
        scope=_scope_out(engine, outcome.scope),
        pending_requests=len(outcome.changed) if outcome.sync_task else 0,
    )


@router.post("/drag/cancel")
async def cancel(engine: ReorderEngine = Depends(get_engine)) -> DragStateOut:
    engine.cancel()
    return await get_drag_state(engine)


def _descendants(engine: ReorderEngine, node_id: NodeRef) -> list[Node]:
    result: list[Node] = []
    for child in engine.tree.children(node_id):
        result.append(child)
        result.extend(_descendants(engine, child.id))
    return result
