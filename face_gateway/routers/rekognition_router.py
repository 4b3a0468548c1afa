# face_gateway/routers/rekognition_router.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile

from face_gateway.core.config import Settings
from face_gateway.schemas.face_schema import (
    CompareFacesRequest,
    CompareFacesResponse,
    DeleteFaceRequest,
    DeleteFaceResponse,
    EnsureCollectionRequest,
    EnsureCollectionResponse,
    ErrorResponse,
    IndexFaceBase64Request,
    IndexFaceResponse,
    SearchFaceBase64Request,
    SearchFaceResponse,
)
from face_gateway.services.adapters.face_adapter import FaceAdapter
from face_gateway.services.face_service import get_app_settings, get_face_adapter
from face_gateway.services.image_service import (
    parse_base64_image,
    parse_threshold,
    read_upload,
    require_field,
    validate_image_bytes,
)

router = APIRouter(
    prefix="/rekognition",
    tags=["rekognition"],
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid input"},
        401: {"model": ErrorResponse, "description": "Missing or invalid API key"},
        413: {"model": ErrorResponse, "description": "Image or body too large"},
        500: {"model": ErrorResponse, "description": "Provider or server error"},
    },
)

def _collection(collection_id: Optional[str], settings: Settings) -> str:
    return collection_id or settings.collection_id

# Idempotent: created=false when the collection already exists
@router.post("/ensure-collection", response_model=EnsureCollectionResponse)
async def ensure_collection(
    req: Optional[EnsureCollectionRequest] = Body(default=None),
    adapter: FaceAdapter = Depends(get_face_adapter),
    settings: Settings = Depends(get_app_settings),
) -> EnsureCollectionResponse:
    collection_id = _collection(req.collectionId if req else None, settings)
    result = await adapter.ensure_collection(collection_id)
    return EnsureCollectionResponse(success=True, created=result.created, collectionId=result.collection_id)

# multipart/form-data: externalId, image, collectionId?
@router.post("/index-face", response_model=IndexFaceResponse, response_model_exclude_none=True)
async def index_face(
    image: Optional[UploadFile] = File(default=None),
    externalId: Optional[str] = Form(default=None),
    collectionId: Optional[str] = Form(default=None),
    adapter: FaceAdapter = Depends(get_face_adapter),
    settings: Settings = Depends(get_app_settings),
) -> IndexFaceResponse:
    external_id = require_field(externalId, "externalId")
    collection_id = _collection(collectionId, settings)
    image_bytes = validate_image_bytes(await read_upload(image), settings.max_image_bytes)

    await adapter.ensure_collection(collection_id)
    return await adapter.index_face(collection_id, image_bytes, external_id)

# JSON: { imageBase64, externalId, collectionId? }
@router.post("/index-face-base64", response_model=IndexFaceResponse, response_model_exclude_none=True)
async def index_face_base64(
    req: IndexFaceBase64Request,
    adapter: FaceAdapter = Depends(get_face_adapter),
    settings: Settings = Depends(get_app_settings),
) -> IndexFaceResponse:
    external_id = require_field(req.externalId, "externalId")
    collection_id = _collection(req.collectionId, settings)
    image_bytes = validate_image_bytes(parse_base64_image(req.imageBase64), settings.max_image_bytes)

    await adapter.ensure_collection(collection_id)
    return await adapter.index_face(collection_id, image_bytes, external_id)

# multipart/form-data: image, threshold?, collectionId?
@router.post("/search-face", response_model=SearchFaceResponse, response_model_exclude_none=True)
async def search_face(
    image: Optional[UploadFile] = File(default=None),
    threshold: Optional[str] = Form(default=None),
    collectionId: Optional[str] = Form(default=None),
    adapter: FaceAdapter = Depends(get_face_adapter),
    settings: Settings = Depends(get_app_settings),
) -> SearchFaceResponse:
    collection_id = _collection(collectionId, settings)
    face_threshold = parse_threshold(threshold)
    image_bytes = validate_image_bytes(await read_upload(image), settings.max_image_bytes)

    await adapter.ensure_collection(collection_id)
    return await adapter.search_face(collection_id, image_bytes, threshold=face_threshold)

# JSON: { imageBase64, threshold?, collectionId? }
@router.post("/search-face-base64", response_model=SearchFaceResponse, response_model_exclude_none=True)
async def search_face_base64(
    req: SearchFaceBase64Request,
    adapter: FaceAdapter = Depends(get_face_adapter),
    settings: Settings = Depends(get_app_settings),
) -> SearchFaceResponse:
    collection_id = _collection(req.collectionId, settings)
    face_threshold = parse_threshold(req.threshold)
    image_bytes = validate_image_bytes(parse_base64_image(req.imageBase64), settings.max_image_bytes)

    await adapter.ensure_collection(collection_id)
    return await adapter.search_face(collection_id, image_bytes, threshold=face_threshold)

# JSON: { sourceImageBase64, targetImageBase64, threshold? } (no collection involved)
@router.post("/compare-faces", response_model=CompareFacesResponse)
async def compare_faces(
    req: CompareFacesRequest,
    adapter: FaceAdapter = Depends(get_face_adapter),
    settings: Settings = Depends(get_app_settings),
) -> CompareFacesResponse:
    face_threshold = parse_threshold(req.threshold)
    source_bytes = validate_image_bytes(parse_base64_image(req.sourceImageBase64), settings.max_image_bytes)
    target_bytes = validate_image_bytes(parse_base64_image(req.targetImageBase64), settings.max_image_bytes)

    return await adapter.compare_faces(source_bytes, target_bytes, threshold=face_threshold)

# JSON: { faceId, collectionId? }
@router.post("/delete-face", response_model=DeleteFaceResponse)
async def delete_face(
    req: DeleteFaceRequest,
    adapter: FaceAdapter = Depends(get_face_adapter),
    settings: Settings = Depends(get_app_settings),
) -> DeleteFaceResponse:
    face_id = require_field(req.faceId, "faceId")
    collection_id = _collection(req.collectionId, settings)

    return await adapter.delete_face(collection_id, face_id)
