import contextlib
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.conf.config import settings
from src.conf.db import connect
from src.repository.contacts import ensure_indexes
from src.routes import contacts
from src.schemas.contact import format_validation_errors
from src.services.errors import MalformedInput, to_http_exception

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    db = connect(settings)
    ensure_indexes(db)
    app.state.db = db
    yield
    app.state.db = None
    db.client.close()

app = FastAPI(title="Contacts API", description="A simple Contacts API for managing contact information",
              version="1.0.0", lifespan=lifespan)

app.include_router(contacts.router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    error = MalformedInput("Validation failed", format_validation_errors(exc.errors()))
    http_exc = to_http_exception(error)
    logger.info("%s %s rejected: %s", request.method, request.url.path, error.errors)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.get("/")
def read_root():
    return {"message": "Contacts API"}


if __name__ == "__main__":
    uvicorn.run("src.main:app", host=settings.host, port=settings.port)
