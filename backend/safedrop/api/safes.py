"""API endpoints for locking secrets into safes and unlocking them."""

from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import FileResponse, JSONResponse
from fastapi.routing import APIRoute
from pydantic import BaseModel, Field

from ..config import ServerConfig
from ..logging import get_logger
from ..vault import Vault


# --- Request/Response Models ---

class SafeContents(BaseModel):
    """What the vault keeps and hands back. Encrypted by the client."""
    nonce: str = Field(..., description="Cipher nonce (base64)")
    secrets: str = Field(..., description="Encrypted secrets blob (base64)")


class LockSafeRequest(SafeContents):
    """Request to lock secrets into a new safe."""
    open_duration: int = Field(..., ge=0, description="Seconds the safe stays open")
    unlocks_left: Optional[int] = Field(
        default=None, ge=1, description="How many times the safe can be unlocked (default 1)"
    )


class LockSafeResponse(BaseModel):
    """Response with the link to the new safe."""
    href: str


# --- Dependencies ---

def get_vault(request: Request) -> Vault:
    return request.app.state.vault


def get_config(request: Request) -> ServerConfig:
    return request.app.state.config


def check_body_size(request: Request) -> None:
    """Reject bodies over the configured size from the Content-Length header alone."""
    config: ServerConfig = request.app.state.config
    length = request.headers.get("content-length")
    if length is None:
        raise HTTPException(status_code=411, detail="Content-Length required")
    try:
        size = int(length)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid Content-Length")
    if size > config.max_body_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Body exceeds {config.max_body_bytes} bytes",
        )


class LimitedBodyRoute(APIRoute):
    """Route that refuses oversized bodies before FastAPI reads them."""

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()
        if self.body_field is None:
            return handler

        async def limited_handler(request: Request) -> Response:
            check_body_size(request)
            return await handler(request)

        return limited_handler


logger = get_logger("api.safes")

router = APIRouter(prefix="/safes", tags=["safes"], route_class=LimitedBodyRoute)


# --- Endpoints ---

@router.post("", response_model=LockSafeResponse)
async def lock_safe(body: LockSafeRequest, vault: Vault = Depends(get_vault)):
    """
    Lock secrets into a new safe.

    The duration and unlock count are write-only: they are never returned
    to anyone who unlocks the safe.
    """
    contents = SafeContents(nonce=body.nonce, secrets=body.secrets)
    safe_id = vault.lock_safe(
        open_duration=body.open_duration,
        payload=contents,
        unlocks=body.unlocks_left,
    )
    return LockSafeResponse(href=f"/safes/{safe_id}")


@router.get("/{safe_id}", include_in_schema=False)
async def get_safe_page(safe_id: str, config: ServerConfig = Depends(get_config)):
    """Serve the client page; the decryption key stays in the URL fragment."""
    if not config.index_file.is_file():
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(config.index_file)


@router.post("/{safe_id}", response_model=SafeContents)
async def unlock_safe(safe_id: str, request: Request, vault: Vault = Depends(get_vault)):
    """Unlock a safe. Unknown, expired and used-up safes all answer 404."""
    contents = vault.unlock_safe(safe_id)
    if contents is None:
        client = request.client.host if request.client else "-"
        logger.debug("Unlock refused: %s", safe_id[:8], extra={"client": client})
        return JSONResponse(
            status_code=404,
            content={"message": f"Safe '{safe_id}' not found"},
        )
    return contents
