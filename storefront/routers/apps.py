"""
Catalog Router - apps and testimonials shown in the storefront
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..schemas.catalog import AppOut, TestimonialOut
from ..storage import get_storage
from ..storage.base import Storage

router = APIRouter(prefix="/api", tags=["catalog"])

CATEGORIES = {"mobile", "web", "desktop"}


@router.get("/apps", response_model=List[AppOut])
def list_apps(
    category: Optional[str] = Query(None, description="mobile, web or desktop"),
    storage: Storage = Depends(get_storage),
):
    if category and category not in CATEGORIES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown category: {category}",
        )
    return storage.get_apps(category)


@router.get("/apps/{app_id}", response_model=AppOut)
def get_app(app_id: str, storage: Storage = Depends(get_storage)):
    app = storage.get_app(app_id)
    if app is None or not app.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="App not found")
    return app


@router.get("/testimonials", response_model=List[TestimonialOut])
def list_testimonials(storage: Storage = Depends(get_storage)):
    return storage.get_testimonials()
