import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from bookstore.book import Book
from bookstore.config import settings
from bookstore.database import seed_from_json
from bookstore.errors import ConflictError, NotFoundError, ValidationError
from bookstore.mutations import MutationGateway
from bookstore.queries import QueryBuilder
from bookstore.services.http_client import cleanup_http_client, get_http_client
from bookstore.services.summary_enricher import SummaryEnricher
from bookstore.store import CatalogStore, SqliteCatalogStore

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# --- Models ---
class BookPayload(BaseModel):
    id: Optional[int] = None
    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    description: Optional[str] = None
    publish_year: Optional[int] = None
    price: Optional[float] = None
    cover_url: Optional[str] = None

    def to_book(self) -> Book:
        return Book.from_dict(self.model_dump())


class BookModel(BaseModel):
    id: int
    title: str
    author: str
    genre: Optional[str] = None
    description: Optional[str] = None
    publish_year: Optional[int] = None
    price: Optional[float] = None
    cover_url: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_book(cls, book: Book) -> "BookModel":
        data = book.to_dict()
        if data["created_at"] is not None:
            data["created_at"] = str(data["created_at"])
        return cls(**data)


class BookPageModel(BaseModel):
    items: List[BookModel]
    search: Optional[str] = None
    page: int
    page_size: int
    total: int
    total_pages: int


class SummaryModel(BaseModel):
    summary: str


class BookDetailModel(BaseModel):
    book: BookModel
    summary: str


class HealthModel(BaseModel):
    status: str
    timestamp: str
    db: bool
    total_books: int
    ai_configured: bool


# --- Dependencies ---
def get_store_for(app: FastAPI) -> CatalogStore:
    if app.state.store is None:
        app.state.store = SqliteCatalogStore(settings.database_file)
    return app.state.store


def get_store(request: Request) -> CatalogStore:
    return get_store_for(request.app)


def get_query_builder(store: CatalogStore = Depends(get_store)) -> QueryBuilder:
    return QueryBuilder(store)


def get_gateway(store: CatalogStore = Depends(get_store)) -> MutationGateway:
    return MutationGateway(store)


def get_enricher(request: Request) -> SummaryEnricher:
    state = request.app.state
    if state.enricher is None:
        state.enricher = SummaryEnricher()
    return state.enricher


# --- Error handlers ---
async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": exc.message, "errors": exc.errors})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors[".".join(loc) or "request"] = err.get("msg", "Invalid value")
    return JSONResponse(status_code=400, content={"detail": "Request validation failed.", "errors": errors})


async def _not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    logger.error("Write conflict on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(store: Optional[CatalogStore] = None, enricher: Optional[SummaryEnricher] = None,
               seed_file: Optional[str] = None) -> FastAPI:
    """Build the API application around the given collaborators.

    When ``store`` or ``enricher`` are omitted they are created from
    ``settings`` on first use.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Initialise resources on startup
        await get_http_client()
        path = seed_file or settings.seed_file
        try:
            seed_from_json(get_store_for(app), path)
        except Exception:
            logger.exception("Seeding from %s failed", path)
        try:
            yield
        finally:
            await cleanup_http_client()

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.store = store
    app.state.enricher = enricher

    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(ConflictError, _conflict_handler)

    @app.get("/health", response_model=HealthModel)
    def health(store: CatalogStore = Depends(get_store), enricher: SummaryEnricher = Depends(get_enricher)):
        """Lightweight health endpoint with a quick database check."""
        db_ok = True
        total = 0
        try:
            total = store.count()
        except Exception:
            logger.exception("Health check could not reach the store")
            db_ok = False
        return HealthModel(
            status="healthy" if db_ok else "degraded",
            timestamp=datetime.utcnow().isoformat() + "Z",
            db=db_ok,
            total_books=total,
            ai_configured=enricher.is_available(),
        )

    @app.get("/books", response_model=BookPageModel)
    def list_books(
        search: Optional[str] = Query(None, description="Text matched against title or author"),
        page: int = Query(1, description="1-based page number"),
        page_size: Optional[int] = Query(None, description="Items per page"),
        queries: QueryBuilder = Depends(get_query_builder),
    ):
        """Get one page of books, optionally filtered by title or author."""
        return BookPageModel(**queries.search(search, page, page_size).to_dict())

    @app.get("/books/{book_id}", response_model=BookModel)
    def get_book(book_id: int, gateway: MutationGateway = Depends(get_gateway)):
        return BookModel.from_book(gateway.get(book_id))

    @app.get("/books/{book_id}/details", response_model=BookDetailModel)
    async def get_book_details(
        book_id: int,
        gateway: MutationGateway = Depends(get_gateway),
        enricher: SummaryEnricher = Depends(get_enricher),
    ):
        """Get a book together with its generated summary."""
        book = await run_in_threadpool(gateway.get, book_id)
        summary = await enricher.summarize(book)
        return BookDetailModel(book=BookModel.from_book(book), summary=summary)

    @app.get("/books/{book_id}/summary", response_model=SummaryModel)
    async def get_book_summary(
        book_id: int,
        gateway: MutationGateway = Depends(get_gateway),
        enricher: SummaryEnricher = Depends(get_enricher),
    ):
        book = await run_in_threadpool(gateway.get, book_id)
        return SummaryModel(summary=await enricher.summarize(book))

    @app.post("/books", response_model=BookModel, status_code=201)
    def create_book(payload: BookPayload, response: Response, gateway: MutationGateway = Depends(get_gateway)):
        """Add a new book; any id in the payload is ignored."""
        created = gateway.create(payload.to_book())
        response.headers["Location"] = f"/books/{created.id}"
        return BookModel.from_book(created)

    @app.put("/books/{book_id}", status_code=204)
    def update_book(book_id: int, payload: BookPayload, gateway: MutationGateway = Depends(get_gateway)):
        """Replace a book; the payload id must match the path id."""
        gateway.update(book_id, payload.to_book())
        return Response(status_code=204)

    @app.delete("/books/{book_id}", status_code=204)
    def delete_book(book_id: int, gateway: MutationGateway = Depends(get_gateway)):
        gateway.delete(book_id)
        return Response(status_code=204)

    return app


app = create_app()
