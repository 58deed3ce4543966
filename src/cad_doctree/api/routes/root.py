from __future__ import annotations

from typing import Any

from fastapi import APIRouter

router = APIRouter()

API_PREFIX = "/api/inventor"


@router.get("/")
async def root() -> dict[str, Any]:
    """Root discovery endpoint listing the operation URLs."""
    return {
        "meta": {
            "title": "CAD Doctree API",
            "description": "Rename CAD document trees and repair their references.",
            "version": "0.1.0",
        },
        "links": {
            "self": "/",
            "assembly-status": f"{API_PREFIX}/assembly-status",
            "design-assist-analyze": f"{API_PREFIX}/design-assist-analyze",
            "design-assist-recursive-rename-with-prefix-and-drawings": (
                f"{API_PREFIX}/design-assist-recursive-rename-with-prefix-and-drawings"
            ),
            "update-drawing-references": f"{API_PREFIX}/update-drawing-references",
            "delete-files": f"{API_PREFIX}/delete-files",
            "openapi": "/openapi.json",
            "docs": "/docs",
        },
    }
