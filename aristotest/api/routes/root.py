from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    return {"name": "AristoTest", "docs": "/docs"}


@router.get("/health")
async def health():
    return {"status": "ok"}
