# face_gateway/services/adapters/face_mock_adapter.py
from __future__ import annotations

import asyncio
import hashlib
import uuid
from dataclasses import dataclass
from typing import Dict

from face_gateway.schemas.face_schema import (
    CompareFacesResponse,
    DeleteFaceResponse,
    IndexFaceResponse,
    SearchFaceResponse,
)
from face_gateway.services.adapters.face_adapter import (
    NO_FACE_MESSAGE,
    NO_MATCH_MESSAGE,
    EnsureCollectionResult,
    FaceAdapter,
)


@dataclass
class MockFace:
    face_id: str
    external_id: str
    digest: str


def _digest(image_bytes: bytes) -> str:
    return hashlib.sha256(image_bytes).hexdigest()


def _has_face(image_bytes: bytes) -> bool:
    # a blank frame (single repeated byte) has nothing to detect
    return len(set(image_bytes)) > 1


# In-memory stand-in for local development (FACE_MODE=mock).
# Identical image bytes are the same face (similarity 100), anything else is 0.
class FaceMockAdapter(FaceAdapter):
    def __init__(self) -> None:
        self.collections: Dict[str, Dict[str, MockFace]] = {}
        self._lock = asyncio.Lock()

    async def ensure_collection(self, collection_id: str) -> EnsureCollectionResult:
        async with self._lock:
            if collection_id in self.collections:
                return EnsureCollectionResult(created=False, collection_id=collection_id)
            self.collections[collection_id] = {}
            return EnsureCollectionResult(created=True, collection_id=collection_id)

    async def index_face(
        self,
        collection_id: str,
        image_bytes: bytes,
        external_id: str,
        max_faces: int = 1,
        quality_filter: str = "AUTO",
    ) -> IndexFaceResponse:
        if not _has_face(image_bytes):
            return IndexFaceResponse(success=False, errorMessage=NO_FACE_MESSAGE)

        face = MockFace(face_id=str(uuid.uuid4()), external_id=external_id, digest=_digest(image_bytes))
        async with self._lock:
            self.collections.setdefault(collection_id, {})[face.face_id] = face

        return IndexFaceResponse(
            success=True,
            faceId=face.face_id,
            externalImageId=external_id,
            confidence=99.9,
        )

    async def search_face(
        self,
        collection_id: str,
        image_bytes: bytes,
        threshold: float = 80.0,
        max_faces: int = 1,
    ) -> SearchFaceResponse:
        digest = _digest(image_bytes)
        faces = self.collections.get(collection_id, {})
        for face in faces.values():
            if face.digest == digest:
                return SearchFaceResponse(
                    success=True,
                    faceFound=True,
                    matchedUserId=face.external_id,
                    similarity=100.0,
                    faceId=face.face_id,
                )
        return SearchFaceResponse(success=True, faceFound=False, errorMessage=NO_MATCH_MESSAGE)

    async def compare_faces(
        self,
        source_bytes: bytes,
        target_bytes: bytes,
        threshold: float = 80.0,
    ) -> CompareFacesResponse:
        same = _digest(source_bytes) == _digest(target_bytes)
        if not (same and _has_face(source_bytes)):
            return CompareFacesResponse(success=True, match=False, similarity=0.0)
        return CompareFacesResponse(success=True, match=True, similarity=100.0)

    async def delete_face(self, collection_id: str, face_id: str) -> DeleteFaceResponse:
        async with self._lock:
            self.collections.get(collection_id, {}).pop(face_id, None)
        return DeleteFaceResponse(success=True)
