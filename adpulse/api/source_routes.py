"""AdPulse — Data Source & Column Mapping Routes."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session

from adpulse.database import get_session
from adpulse.models.source_models import ColumnMapping, DataSource, DataType
from adpulse.core.column_registry import CanonicalColumn
from adpulse.normalizer.column_mapper import detect_data_type, suggest_mappings
from adpulse.storage import repository
from adpulse.core.logging import get_logger

logger = get_logger("api.sources")

router = APIRouter(tags=["Sources"])


# ── Request / Response Models ──


class DataSourceCreate(BaseModel):
    """Request body for POST /sources."""

    name: str
    sheet_id: str
    sheet_url: str = ""
    platform: str
    data_type: DataType
    tab_name: Optional[str] = None
    tab_gid: Optional[str] = None
    is_active: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Swiggy Ads - Dec",
                    "sheet_id": "1AbCdEf",
                    "platform": "swiggy",
                    "data_type": "ads",
                    "tab_gid": "0",
                }
            ]
        }
    }


class DataSourceUpdate(BaseModel):
    """Request body for PATCH /sources/{id}. Only provided fields change."""

    name: Optional[str] = None
    sheet_id: Optional[str] = None
    sheet_url: Optional[str] = None
    platform: Optional[str] = None
    data_type: Optional[DataType] = None
    tab_name: Optional[str] = None
    tab_gid: Optional[str] = None
    is_active: Optional[bool] = None


class DataSourceRead(BaseModel):
    id: str
    name: str
    sheet_id: str
    sheet_url: str
    platform: str
    data_type: str
    tab_name: Optional[str] = None
    tab_gid: Optional[str] = None
    is_active: bool
    last_synced_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ColumnMappingCreate(BaseModel):
    """Request body for PUT /mappings."""

    platform: str
    data_type: DataType
    source_column: str
    target_column: CanonicalColumn
    is_active: bool = True


class MappingSuggestRequest(BaseModel):
    headers: List[str]


# ── Data Sources ──


@router.get("/sources", response_model=List[DataSourceRead])
async def list_sources(
    active: bool = Query(False, description="Only active sources"),
    session: Session = Depends(get_session),
):
    return repository.list_data_sources(session, active_only=active)


@router.post("/sources", response_model=DataSourceRead, status_code=201)
async def create_source(
    request: DataSourceCreate, session: Session = Depends(get_session)
):
    source = DataSource(**request.model_dump(mode="json"))
    return repository.add_data_source(session, source)


@router.get("/sources/{source_id}", response_model=DataSourceRead)
async def get_source(source_id: str, session: Session = Depends(get_session)):
    source = repository.get_data_source(session, source_id)
    if source is None:
        raise HTTPException(status_code=404, detail="Data source not found")
    return source


@router.patch("/sources/{source_id}", response_model=DataSourceRead)
async def update_source(
    source_id: str,
    request: DataSourceUpdate,
    session: Session = Depends(get_session),
):
    updates = request.model_dump(mode="json", exclude_unset=True)
    source = repository.update_data_source(session, source_id, updates)
    if source is None:
        raise HTTPException(status_code=404, detail="Data source not found")
    return source


@router.post("/sources/{source_id}/toggle", response_model=DataSourceRead)
async def toggle_source(source_id: str, session: Session = Depends(get_session)):
    """Flip a source between active and paused."""
    source = repository.get_data_source(session, source_id)
    if source is None:
        raise HTTPException(status_code=404, detail="Data source not found")
    return repository.update_data_source(
        session, source_id, {"is_active": not source.is_active}
    )


@router.delete("/sources/{source_id}")
async def delete_source(source_id: str, session: Session = Depends(get_session)):
    """Delete a source; its metrics go too if no other source shares them."""
    if not repository.delete_data_source(session, source_id):
        raise HTTPException(status_code=404, detail="Data source not found")
    return {"status": "success", "deleted": source_id}


# ── Column Mappings ──


@router.get("/mappings", response_model=List[ColumnMapping])
async def list_mappings(
    platform: Optional[str] = Query(None),
    data_type: Optional[DataType] = Query(None),
    session: Session = Depends(get_session),
):
    return repository.get_column_mappings(
        session, platform, data_type.value if data_type else None
    )


@router.put("/mappings", response_model=ColumnMapping)
async def save_mapping(
    request: ColumnMappingCreate, session: Session = Depends(get_session)
):
    """Create or replace the override for one source column."""
    mapping = ColumnMapping(
        platform=request.platform,
        data_type=request.data_type.value,
        source_column=request.source_column.strip(),
        target_column=request.target_column.value,
        is_active=request.is_active,
    )
    return repository.upsert_column_mapping(session, mapping)


@router.delete("/mappings/{mapping_id}")
async def delete_mapping(mapping_id: str, session: Session = Depends(get_session)):
    if not repository.delete_column_mapping(session, mapping_id):
        raise HTTPException(status_code=404, detail="Column mapping not found")
    return {"status": "success", "deleted": mapping_id}


@router.post("/mappings/suggest")
async def suggest(request: MappingSuggestRequest):
    """Suggest canonical targets for a sheet's headers."""
    return {
        "status": "success",
        "data_type": detect_data_type(request.headers),
        "suggestions": suggest_mappings(request.headers),
    }
