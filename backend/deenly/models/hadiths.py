from pydantic import BaseModel


class Hadith(BaseModel):
    id: str
    book: str
    narrator: str
    number: int
    text: str
    reference: str


class HadithCollection(BaseModel):
    id: str
    name: str
    hadiths: list[Hadith]


class HadithSearchResult(BaseModel):
    collection_id: str
    collection_name: str
    hadith: Hadith
