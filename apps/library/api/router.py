from fastapi import APIRouter, Depends, Query, Request
from sqlmodel.ext.asyncio.session import AsyncSession
from typing import List, Optional
from repokit.criteria.params import RequestParams
from repokit.database.manager import DatabaseManager
from repokit.repository.unit_of_work import UnitOfWork
from repokit.response import ResponseModel
from ..service import LibraryService
from pydantic import BaseModel, Field

router = APIRouter()

class BookCreate(BaseModel):
    title: str = Field(max_length=255)
    slug: str = Field(max_length=255)
    isbn: Optional[str] = None
    summary: Optional[str] = None
    published_year: Optional[int] = None
    author_id: Optional[int] = None

class BookUpdate(BaseModel):
    title: Optional[str] = None
    slug: Optional[str] = None
    isbn: Optional[str] = None
    summary: Optional[str] = None
    published_year: Optional[int] = None
    author_id: Optional[int] = None

class BulkUpdate(BaseModel):
    ids: List[int]
    data: BookUpdate

class BulkIds(BaseModel):
    ids: List[int]

async def get_db():
    """Get database session."""
    manager = DatabaseManager.get_instance()
    async for session in manager.sql.get_session():
        yield session

def get_uow(
    db: AsyncSession = Depends(get_db)
) -> UnitOfWork:
    """Dependency: create UnitOfWork."""
    return UnitOfWork(session=db)

def get_library_service(
    uow: UnitOfWork = Depends(get_uow)
) -> LibraryService:
    """Dependency: create LibraryService."""
    return LibraryService(uow)

def get_params(request: Request) -> RequestParams:
    """Dependency: criteria parameters from the query string."""
    return RequestParams.from_request(request)

@router.get("/books")
async def search_books(
    params: RequestParams = Depends(get_params),
    service: LibraryService = Depends(get_library_service)
):
    """List books. Query: search, searchFields, filter, orderBy, sortedBy, with, page."""
    page, items = await service.search_books(params)
    return ResponseModel.page(page, items)

@router.get("/books/filter")
async def filter_books(
    per_page: Optional[int] = Query(None, ge=1),
    params: RequestParams = Depends(get_params),
    service: LibraryService = Depends(get_library_service)
):
    """List books through BookFilter. Query: author_id, year_from, year_to, sort_by, sort_dir, page."""
    page, items = await service.filter_books(params, per_page)
    return ResponseModel.page(page, items)

@router.post("/books")
async def create_book(
    payload: BookCreate,
    service: LibraryService = Depends(get_library_service)
):
    book = await service.create_book(payload.model_dump())
    return ResponseModel.success(data=book)

@router.post("/books/bulk")
async def bulk_create_books(
    payload: List[BookCreate],
    service: LibraryService = Depends(get_library_service)
):
    """Insert many books in one statement."""
    count = await service.bulk_create_books([item.model_dump() for item in payload])
    return ResponseModel.success(data={"created": count})

@router.patch("/books/bulk")
async def bulk_update_books(
    payload: BulkUpdate,
    service: LibraryService = Depends(get_library_service)
):
    """Apply the same changes to every listed book."""
    data = payload.data.model_dump(exclude_unset=True)
    if not data:
        return ResponseModel.fail(code=400, message="Nothing to update")
    count = await service.bulk_update_books(payload.ids, data)
    return ResponseModel.success(data={"updated": count})

@router.post("/books/bulk-delete")
async def bulk_delete_books(
    payload: BulkIds,
    service: LibraryService = Depends(get_library_service)
):
    count = await service.bulk_delete_books(payload.ids)
    return ResponseModel.success(data={"deleted": count})

@router.get("/books/slug/{slug}")
async def get_book_by_slug(
    slug: str,
    service: LibraryService = Depends(get_library_service)
):
    book = await service.get_book_by_slug(slug)
    return ResponseModel.success(data=book)

@router.get("/books/{book_id}")
async def get_book(
    book_id: int,
    relations: Optional[str] = Query(None, alias="with"),
    service: LibraryService = Depends(get_library_service)
):
    """Get one book; ?with=author;reviews loads relations."""
    book = await service.get_book(book_id, relations)
    return ResponseModel.success(data=book)

@router.put("/books/{book_id}")
async def update_book(
    book_id: int,
    payload: BookUpdate,
    service: LibraryService = Depends(get_library_service)
):
    book = await service.update_book(book_id, payload.model_dump(exclude_unset=True))
    return ResponseModel.success(data=book)

@router.delete("/books/{book_id}")
async def delete_book(
    book_id: int,
    service: LibraryService = Depends(get_library_service)
):
    await service.delete_book(book_id)
    return ResponseModel.success(data={"id": book_id})

@router.get("/books/{book_id}/reviews")
async def book_reviews(
    book_id: int,
    per_page: Optional[int] = Query(None, ge=1),
    params: RequestParams = Depends(get_params),
    service: LibraryService = Depends(get_library_service)
):
    """Reviews of a book, paginated in memory. Query: page, per_page."""
    page, items = await service.book_reviews(book_id, params, per_page)
    return ResponseModel.page(page, items)

@router.get("/authors")
async def search_authors(
    params: RequestParams = Depends(get_params),
    service: LibraryService = Depends(get_library_service)
):
    page, items = await service.search_authors(params)
    return ResponseModel.page(page, items)

@router.get("/authors/options")
async def author_options(
    service: LibraryService = Depends(get_library_service)
):
    """Author id => name pairs for select boxes."""
    options = await service.author_options()
    return ResponseModel.success(data=options)
