from fastapi import APIRouter

from hospidesk.api.deps import BackendDep

router = APIRouter()

@router.get("/health")
async def health(backend: BackendDep):
    return {"status": "ok", "backend": type(backend.store).__name__}
