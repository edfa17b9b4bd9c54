from fastapi import APIRouter, HTTPException
from deenly.models.hadiths import Hadith, HadithCollection, HadithSearchResult
from deenly.services import hadiths

router = APIRouter(prefix="/api/hadiths", tags=["hadiths"])


@router.get("", response_model=list[HadithCollection])
async def list_collections():
    return hadiths.list_collections()


@router.get("/search", response_model=list[HadithSearchResult])
async def search_hadiths(q: str = ""):
    if not q.strip():
        return []
    return hadiths.search_hadiths(q)


@router.get("/{collection_id}", response_model=HadithCollection)
async def get_collection(collection_id: str):
    collection = hadiths.get_collection(collection_id)
    if collection is None:
        raise HTTPException(status_code=404, detail="Collection not found")
    return collection


@router.get("/{collection_id}/{hadith_id}", response_model=Hadith)
async def get_hadith(collection_id: str, hadith_id: str):
    hadith = hadiths.get_hadith(collection_id, hadith_id)
    if hadith is None:
        raise HTTPException(status_code=404, detail="Hadith not found")
    return hadith
