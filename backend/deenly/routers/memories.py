from fastapi import APIRouter, Depends, HTTPException
from deenly.dependencies import get_current_user
from deenly.models.memories import MemoryCreate, MemoryResponse
from deenly.services import memories

router = APIRouter(prefix="/api/memories", tags=["memories"])


@router.get("", response_model=list[MemoryResponse])
async def list_memories(user: dict = Depends(get_current_user)):
    return await memories.list_memories(user)


@router.post("", response_model=MemoryResponse, status_code=201)
async def add_memory(request: MemoryCreate, user: dict = Depends(get_current_user)):
    content = request.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Memory content is empty")
    return await memories.add_memory(user, content)


@router.delete("/{memory_id}", status_code=204)
async def delete_memory(memory_id: str, user: dict = Depends(get_current_user)):
    await memories.delete_memory(user, memory_id)
