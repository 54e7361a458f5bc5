from fastapi import APIRouter, status

from hospidesk.api.deps import BackendDep, UserDep
from hospidesk.schemas.comments import Comment, CommentCreate

router = APIRouter()

@router.post("/{ticket_id}/comments", response_model=list[Comment], status_code=status.HTTP_201_CREATED)
async def add_comment(ticket_id: str, payload: CommentCreate, backend: BackendDep, current: UserDep):
    await backend.tickets.add_comment(current, ticket_id, payload)
    return await backend.tickets.list_comments(current, ticket_id)

@router.get("/{ticket_id}/comments", response_model=list[Comment])
async def list_comments(ticket_id: str, backend: BackendDep, current: UserDep):
    return await backend.tickets.list_comments(current, ticket_id)
