from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import (
    CountriesResponse,
    ExpertModel,
    ExpertsResponse,
    MessageResponse,
    VisaTypeModel,
    VisaTypesResponse,
)
from api.store import CatalogStore, RecordConflict, RecordNotFound
from core.config import settings


app = FastAPI(title="Visa Catalog Dev API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_store = CatalogStore.seeded()


def get_store() -> CatalogStore:
    return _store


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": str(exc), "error": type(exc).__name__})


def _server_error(label: str, exc: Exception) -> JSONResponse:
    logger.exception("%s failed", label)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in errors]
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(
            {"message": f"Invalid fields: {', '.join(fields)}", "error": "ValidationError", "detail": errors}
        ),
    )


# ---------------- Countries / visa types ----------------
@app.get("/countries", response_model=CountriesResponse)
def list_countries(store: CatalogStore = Depends(get_store)):
    try:
        return {"countries": list(store.countries)}
    except Exception as exc:
        return _server_error("list_countries", exc)


@app.get("/visas/{country}", response_model=VisaTypesResponse)
def list_visa_types(country: str, store: CatalogStore = Depends(get_store)):
    try:
        return {"country": country, "visa_types": store.list_visa_types(country)}
    except RecordNotFound as exc:
        return _error(404, exc)
    except Exception as exc:
        return _server_error("list_visa_types", exc)


@app.post("/visas/{country}", status_code=201)
def create_visa(country: str, visa: VisaTypeModel, store: CatalogStore = Depends(get_store)):
    try:
        return store.create_visa(country, visa.model_dump())
    except RecordNotFound as exc:
        return _error(404, exc)
    except RecordConflict as exc:
        return _error(409, exc)
    except Exception as exc:
        return _server_error("create_visa", exc)


@app.put("/visas/{country}/{visa_type:path}")
def update_visa(country: str, visa_type: str, visa: VisaTypeModel, store: CatalogStore = Depends(get_store)):
    try:
        return store.update_visa(country, visa_type, visa.model_dump())
    except RecordNotFound as exc:
        return _error(404, exc)
    except Exception as exc:
        return _server_error("update_visa", exc)


@app.delete("/visas/{country}/{visa_type:path}", response_model=MessageResponse)
def delete_visa(country: str, visa_type: str, store: CatalogStore = Depends(get_store)):
    try:
        store.delete_visa(country, visa_type)
        return {"message": f"Deleted {visa_type} for {country}"}
    except RecordNotFound as exc:
        return _error(404, exc)
    except Exception as exc:
        return _server_error("delete_visa", exc)


# ---------------- Experts ----------------
@app.get("/experts", response_model=ExpertsResponse)
def list_experts(
    country: Optional[str] = Query(default=None),
    visa_type: Optional[str] = Query(default=None, alias="visaType"),
    language: Optional[str] = Query(default=None),
    min_rating: Optional[float] = Query(default=None, alias="minRating"),
    store: CatalogStore = Depends(get_store),
):
    try:
        experts = store.list_experts(country=country, visa_type=visa_type, language=language, min_rating=min_rating)
        return {"experts": experts}
    except Exception as exc:
        return _server_error("list_experts", exc)


@app.get("/experts/country/{country}/visa-type/{visa_type:path}", response_model=ExpertsResponse)
def list_experts_by_country_and_visa(country: str, visa_type: str, store: CatalogStore = Depends(get_store)):
    try:
        return {"experts": store.list_experts(country=country, visa_type=visa_type)}
    except Exception as exc:
        return _server_error("list_experts_by_country_and_visa", exc)


@app.get("/experts/country/{country}", response_model=ExpertsResponse)
def list_experts_by_country(country: str, store: CatalogStore = Depends(get_store)):
    try:
        return {"experts": store.list_experts(country=country)}
    except Exception as exc:
        return _server_error("list_experts_by_country", exc)


@app.get("/experts/visa-type/{visa_type:path}", response_model=ExpertsResponse)
def list_experts_by_visa_type(visa_type: str, store: CatalogStore = Depends(get_store)):
    try:
        return {"experts": store.list_experts(visa_type=visa_type)}
    except Exception as exc:
        return _server_error("list_experts_by_visa_type", exc)


@app.get("/experts/{expert_id}", response_model=ExpertModel)
def get_expert(expert_id: str, store: CatalogStore = Depends(get_store)):
    try:
        return store.get_expert(expert_id)
    except RecordNotFound as exc:
        return _error(404, exc)
    except Exception as exc:
        return _server_error("get_expert", exc)


@app.post("/experts", status_code=201, response_model=ExpertModel)
def create_expert(expert: ExpertModel, store: CatalogStore = Depends(get_store)):
    try:
        return store.create_expert(expert.model_dump(exclude={"id"}))
    except Exception as exc:
        return _server_error("create_expert", exc)


@app.put("/experts/{expert_id}", response_model=ExpertModel)
def update_expert(expert_id: str, expert: ExpertModel, store: CatalogStore = Depends(get_store)):
    try:
        return store.update_expert(expert_id, expert.model_dump(exclude={"id"}))
    except RecordNotFound as exc:
        return _error(404, exc)
    except Exception as exc:
        return _server_error("update_expert", exc)


@app.delete("/experts/{expert_id}", response_model=MessageResponse)
def delete_expert(expert_id: str, store: CatalogStore = Depends(get_store)):
    try:
        store.delete_expert(expert_id)
        return {"message": f"Deleted expert {expert_id}"}
    except RecordNotFound as exc:
        return _error(404, exc)
    except Exception as exc:
        return _server_error("delete_expert", exc)
