# face_gateway/schemas/face_schema.py
from __future__ import annotations

from typing import Optional, Union
from pydantic import BaseModel, Field

# --- Requests (JSON bodies) ---
# Required fields are Optional here on purpose: missing values are reported as
# bad_request by the handlers, in the same shape as every other input error.

class EnsureCollectionRequest(BaseModel):
    collectionId: Optional[str] = None

class IndexFaceBase64Request(BaseModel):
    imageBase64: Optional[str] = None
    externalId: Optional[str] = None
    collectionId: Optional[str] = None

class SearchFaceBase64Request(BaseModel):
    imageBase64: Optional[str] = None
    threshold: Optional[Union[float, str]] = None
    collectionId: Optional[str] = None

class CompareFacesRequest(BaseModel):
    sourceImageBase64: Optional[str] = None
    targetImageBase64: Optional[str] = None
    threshold: Optional[Union[float, str]] = None

class DeleteFaceRequest(BaseModel):
    faceId: Optional[str] = None
    collectionId: Optional[str] = None

# --- Responses ---

class HealthResponse(BaseModel):
    ok: bool = True
    service: str
    env: str

class EnsureCollectionResponse(BaseModel):
    success: bool = True
    created: bool
    collectionId: str

# success=False never carries faceId / externalImageId / confidence
class IndexFaceResponse(BaseModel):
    success: bool
    faceId: Optional[str] = None
    externalImageId: Optional[str] = None
    confidence: Optional[float] = None
    errorMessage: Optional[str] = None

class SearchFaceResponse(BaseModel):
    success: bool
    faceFound: bool = False
    matchedUserId: Optional[str] = None
    similarity: Optional[float] = None
    faceId: Optional[str] = None
    errorMessage: Optional[str] = None

class CompareFacesResponse(BaseModel):
    success: bool = True
    match: bool
    similarity: float = Field(0.0, ge=0.0, le=100.0)

class DeleteFaceResponse(BaseModel):
    success: bool = True

# Error payload produced by the normalization layer (4xx/5xx)
class ErrorResponse(BaseModel):
    success: bool = False
    error: str = Field(..., description="Error kind (e.g. bad_request) or provider error code")
    message: str
    details: Optional[str] = Field(default=None, description="Raw error message (non-production only)")
    stack: Optional[str] = Field(default=None, description="Traceback (non-production only)")
    providerStatus: Optional[int] = None
