# face_gateway/services/adapters/face_adapter.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from face_gateway.schemas.face_schema import (
    CompareFacesResponse,
    DeleteFaceResponse,
    IndexFaceResponse,
    SearchFaceResponse,
)

NO_FACE_MESSAGE = "No face was detected in the image"
NO_MATCH_MESSAGE = "No matching face was found"


@dataclass(frozen=True)
class EnsureCollectionResult:
    created: bool
    collection_id: str


class FaceAdapter(ABC):
    """Face-recognition provider operations, shared by every route."""

    @abstractmethod
    async def ensure_collection(self, collection_id: str) -> EnsureCollectionResult:
        """Create the collection if missing. Never fails because it already exists."""
        raise NotImplementedError

    @abstractmethod
    async def index_face(
        self,
        collection_id: str,
        image_bytes: bytes,
        external_id: str,
        max_faces: int = 1,
        quality_filter: str = "AUTO",
    ) -> IndexFaceResponse:
        """Enrol at most one face. No detected face is success=False, not an error."""
        raise NotImplementedError

    @abstractmethod
    async def search_face(
        self,
        collection_id: str,
        image_bytes: bytes,
        threshold: float = 80.0,
        max_faces: int = 1,
    ) -> SearchFaceResponse:
        """Best match above threshold. No match is success=True, faceFound=False."""
        raise NotImplementedError

    @abstractmethod
    async def compare_faces(
        self,
        source_bytes: bytes,
        target_bytes: bytes,
        threshold: float = 80.0,
    ) -> CompareFacesResponse:
        raise NotImplementedError

    @abstractmethod
    async def delete_face(self, collection_id: str, face_id: str) -> DeleteFaceResponse:
        raise NotImplementedError

    def close(self) -> None:
        """Release provider resources on shutdown."""
