from pathlib import Path

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

router = APIRouter()

STATIC_DIR = Path(__file__).resolve().parent / "static"


def _serve_form(name: str) -> FileResponse:
    path = STATIC_DIR / name
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{name} does not exist")
    return FileResponse(path, media_type="text/html")


@router.get("/RegisterForm.html")
def register_form():
    return _serve_form("RegisterForm.html")


@router.get("/SearchForm.html")
def search_form():
    return _serve_form("SearchForm.html")
