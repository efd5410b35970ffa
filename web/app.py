from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from fastapi import Depends, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

# allow importing the parser from repo root
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from coda_errors import ParseError  # noqa: E402
from coda_logging import configure_logging, get_logger  # noqa: E402
from coda_statement_parser import decode_lines, parse_statement, statement_to_dict  # noqa: E402


APP_DIR = Path(__file__).resolve().parent
CONFIG_PATH = APP_DIR / "config.json"
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024

logger = get_logger("coda.web")


@dataclass(frozen=True)
class User:
    username: str
    token: str


class LoginRequest(BaseModel):
    token: str


def load_config(path: Path = CONFIG_PATH) -> dict:
    if not path.exists():
        raise RuntimeError(f"Missing config file: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def build_user_index(cfg: dict) -> Dict[str, User]:
    users: Dict[str, User] = {}
    for raw in cfg.get("users", []):
        token = str(raw.get("token", "")).strip()
        if not token:
            continue
        users[token] = User(username=str(raw.get("username", "unknown")), token=token)
    return users


def create_app(cfg: Optional[dict] = None) -> FastAPI:
    if cfg is None:
        cfg = load_config()
    configure_logging(os.getenv("CODA_LOG_LEVEL"))

    parser_cfg = cfg.get("parser", {})
    default_encoding = str(parser_cfg.get("default_encoding", "utf-8"))
    max_upload_bytes = int(parser_cfg.get("max_upload_bytes", DEFAULT_MAX_UPLOAD_BYTES))

    user_index = build_user_index(cfg)

    app = FastAPI(title="CODA Statement API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.get("server", {}).get("cors_origins", ["*"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    bearer = HTTPBearer(auto_error=False)

    def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(bearer),
    ) -> User:
        if credentials is None or credentials.scheme.lower() != "bearer":
            raise HTTPException(status_code=401, detail="missing bearer token")
        token = credentials.credentials.strip()
        user = user_index.get(token)
        if user is None:
            raise HTTPException(status_code=401, detail="invalid token")
        return user

    @app.get("/api/health")
    def health() -> dict:
        return {"ok": True}

    @app.post("/api/login")
    def login(payload: LoginRequest) -> dict:
        user = user_index.get(payload.token.strip())
        if not user:
            raise HTTPException(status_code=401, detail="invalid token")
        return {"username": user.username}

    @app.get("/api/me")
    def me(user: User = Depends(get_current_user)) -> dict:
        return {"username": user.username}

    @app.post("/api/statements/parse")
    async def parse_uploaded_statement(
        file: UploadFile = File(...),
        encoding: Optional[str] = Query(default=None),
        user: User = Depends(get_current_user),
    ) -> dict:
        content = bytearray()
        while True:
            chunk = await file.read(1024 * 1024)
            if not chunk:
                break
            content.extend(chunk)
            if len(content) > max_upload_bytes:
                raise HTTPException(status_code=413, detail="upload too large")

        codec = encoding or default_encoding
        try:
            lines = decode_lines(bytes(content), codec)
        except LookupError:
            raise HTTPException(status_code=400, detail=f"unknown encoding: {codec}")
        except UnicodeDecodeError as e:
            raise HTTPException(status_code=400, detail=f"could not decode file: {e}")

        try:
            statement = parse_statement(lines)
        except ParseError as e:
            logger.info("upload %s from %s rejected: %s", file.filename, user.username, e)
            raise HTTPException(status_code=400, detail=f"parse failed: {e}")

        logger.info(
            "upload %s from %s parsed: %d movements",
            file.filename,
            user.username,
            len(statement.movements),
        )
        return {"filename": file.filename, "statement": statement_to_dict(statement)}

    return app
