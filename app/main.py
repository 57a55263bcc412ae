import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.media import ensure_dir, media_root, media_url
from app.observability import RequestLoggingMiddleware
from app.routers import master_data, merchants, products, users

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(title="Merchant Catalog API")

media_root_path = media_root()
ensure_dir(media_root_path)
app.mount(media_url(), StaticFiles(directory=str(media_root_path)), name="media")

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def _parse_env_list(name: str) -> list[str]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_parse_env_list("CORS_ALLOWED_ORIGINS") or ALLOWED_ORIGINS,
    allow_methods=["*"], allow_headers=["*"], allow_credentials=True,
)
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health")
def health(): return {"ok": True}


app.include_router(users.router)
app.include_router(merchants.router)
app.include_router(products.router)
app.include_router(master_data.router)
