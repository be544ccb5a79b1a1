import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from .api.errors import register_exception_handlers
from .api.routes import auth, bookings, chat, misc, operator_bookings, transactions, warnets
from .config import get_settings
from .core.constants import UPLOADS_URL_PREFIX
from .db.schema import ensure_schema
from .db.session import SessionLocal, engine
from .services.seed import ensure_operator_exists
from .services.storage import ensure_upload_directory

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Bowar API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=90,
)

app.mount(
    UPLOADS_URL_PREFIX,
    StaticFiles(directory=ensure_upload_directory(), check_dir=False),
    name="uploads",
)

app.include_router(auth.router)
app.include_router(warnets.router)
app.include_router(bookings.router)
app.include_router(operator_bookings.router)
app.include_router(transactions.router)
app.include_router(chat.router)
app.include_router(misc.router)

register_exception_handlers(app)


@app.on_event("startup")
async def startup_event() -> None:
    ensure_schema(engine)
    with SessionLocal() as session:
        ensure_operator_exists(
            session,
            settings.default_operator_username,
            settings.default_operator_email,
            settings.default_operator_password,
        )
