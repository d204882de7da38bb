"""FastAPI application for the sknotes local JSON API."""

import secrets
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Response, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .. import __version__
from ..adapters.archive import load_document
from ..adapters.xml_codec import SKML
from ..core.document import Document
from ..errors import BridgeIOError, CorruptArchive, InvalidDocument
from ..outline import document_to_dict


def create_app(runtime: Any, token: str | None = None, enable_cors: bool = False) -> FastAPI:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime instance with library and bridge
        token: Bearer token for authentication (None to disable auth)
        enable_cors: Enable CORS middleware

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="sknotes API",
        description="Local read-only JSON API for an sknotes library",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or credentials.credentials != token:
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    library = runtime.library

    def read_note(path: str) -> Document:
        """Read a note fresh from disk by library-relative path; nothing outside the library."""
        root = library.base_path.resolve()
        target = (root / path).resolve()
        if root not in target.parents:
            raise HTTPException(status_code=400, detail="Path is outside the library")
        if not library.is_note_path(target) or not target.is_file():
            raise HTTPException(status_code=404, detail=f"Note {path} not found")
        try:
            return load_document(runtime.bridge.read_binary(target))
        except (CorruptArchive, InvalidDocument) as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        except BridgeIOError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e

    @app.get("/health")  # type: ignore[misc]
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.get("/library")  # type: ignore[misc]
    async def list_library(auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        """Rescan and list notes and collections."""
        items = library.refresh()
        return [
            {
                "path": str(Path(item.path).relative_to(library.base_path)),
                "type": item.type.value,
            }
            for item in items
        ]

    @app.get("/notes")  # type: ignore[misc]
    async def get_note(
        path: str = Query(..., description="Library-relative note path"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        """Get head, blocks and embedded file listing."""
        document = read_note(path)
        result = document_to_dict(document)
        result["path"] = path
        return result

    @app.get("/notes/skml")  # type: ignore[misc]
    async def get_note_skml(
        path: str = Query(..., description="Library-relative note path"),
        auth: None = Depends(verify_token),
    ) -> Response:
        """Get the SKML text of a note."""
        document = read_note(path)
        return Response(content=SKML.encode(document), media_type="application/xml")

    @app.get("/notes/files/{filename}")  # type: ignore[misc]
    async def get_note_file(
        filename: str,
        path: str = Query(..., description="Library-relative note path"),
        auth: None = Depends(verify_token),
    ) -> Response:
        """Get the bytes of an embedded file."""
        document = read_note(path)
        embedded = document.get_file(filename)
        if embedded is None:
            raise HTTPException(status_code=404, detail=f"File {filename} not found")
        return Response(content=embedded.data, media_type=embedded.media_type)

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
