# face_gateway/services/adapters/face_rekognition_adapter.py
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    ParamValidationError,
    PartialCredentialsError,
)
from fastapi.concurrency import run_in_threadpool

from face_gateway.core.errors import CREDENTIALS_MESSAGE, BadRequestError, ProviderError
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

logger = logging.getLogger(__name__)

# Error codes AWS answers with when the server's credentials are missing or wrong
CREDENTIAL_ERROR_CODES = {
    "UnrecognizedClientException",
    "InvalidSignatureException",
    "SignatureDoesNotMatch",
    "InvalidClientTokenId",
    "ExpiredTokenException",
    "MissingAuthenticationTokenException",
}


def translate_error(exc: Exception) -> Exception:
    """Map a botocore exception onto the gateway's error variants."""
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code") or "ClientError"
        message = error.get("Message") or str(exc)
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in CREDENTIAL_ERROR_CODES:
            return ProviderError(
                CREDENTIALS_MESSAGE,
                provider_code=code,
                upstream_status=status,
                detail=message,
                credentials_error=True,
            )
        return ProviderError(message, provider_code=code, upstream_status=status)

    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return ProviderError(
            CREDENTIALS_MESSAGE,
            provider_code=type(exc).__name__,
            detail=str(exc),
            credentials_error=True,
        )

    if isinstance(exc, ParamValidationError):
        return BadRequestError(str(exc))

    return ProviderError(str(exc), provider_code=type(exc).__name__)


class FaceRekognitionAdapter(FaceAdapter):
    """
    AWS Rekognition backed adapter.
    One boto3 client is created per process and shared by all requests; boto3 clients
    are thread-safe and every blocking call runs in the threadpool.
    Credentials come from the default provider chain (env vars, profile, instance role).
    """

    def __init__(self, region: str, client: Optional[Any] = None) -> None:
        self.region = region
        self.client = client if client is not None else boto3.client("rekognition", region_name=region)

    async def _call(self, func: Callable[..., Any], **kwargs: Any) -> Any:
        try:
            return await run_in_threadpool(func, **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e) from e

    def _list_collection_ids(self) -> List[str]:
        ids: List[str] = []
        for page in self.client.get_paginator("list_collections").paginate():
            ids.extend(page.get("CollectionIds") or [])
        return ids

    async def ensure_collection(self, collection_id: str) -> EnsureCollectionResult:
        try:
            existing = await run_in_threadpool(self._list_collection_ids)
            if collection_id in existing:
                return EnsureCollectionResult(created=False, collection_id=collection_id)
        except (ClientError, BotoCoreError) as e:
            # Listing may be denied by IAM; creation can still work. This also hides
            # real authorization problems, so keep it visible in the logs.
            logger.warning(f"ListCollections failed, trying CreateCollection directly: {e}")

        try:
            await run_in_threadpool(self.client.create_collection, CollectionId=collection_id)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ResourceAlreadyExistsException":
                return EnsureCollectionResult(created=False, collection_id=collection_id)
            raise translate_error(e) from e
        except BotoCoreError as e:
            raise translate_error(e) from e

        logger.info(f"Created Rekognition collection {collection_id}")
        return EnsureCollectionResult(created=True, collection_id=collection_id)

    async def index_face(
        self,
        collection_id: str,
        image_bytes: bytes,
        external_id: str,
        max_faces: int = 1,
        quality_filter: str = "AUTO",
    ) -> IndexFaceResponse:
        data = await self._call(
            self.client.index_faces,
            CollectionId=collection_id,
            Image={"Bytes": image_bytes},
            ExternalImageId=external_id,
            DetectionAttributes=["ALL"],
            MaxFaces=max_faces,
            QualityFilter=quality_filter,
        )
        records = data.get("FaceRecords") or []
        if not records:
            return IndexFaceResponse(success=False, errorMessage=NO_FACE_MESSAGE)

        face = records[0].get("Face") or {}
        return IndexFaceResponse(
            success=True,
            faceId=face.get("FaceId"),
            externalImageId=face.get("ExternalImageId") or external_id,
            confidence=face.get("Confidence"),
        )

    async def search_face(
        self,
        collection_id: str,
        image_bytes: bytes,
        threshold: float = 80.0,
        max_faces: int = 1,
    ) -> SearchFaceResponse:
        data = await self._call(
            self.client.search_faces_by_image,
            CollectionId=collection_id,
            Image={"Bytes": image_bytes},
            FaceMatchThreshold=threshold,
            MaxFaces=max_faces,
        )
        matches = data.get("FaceMatches") or []
        if not matches:
            return SearchFaceResponse(success=True, faceFound=False, errorMessage=NO_MATCH_MESSAGE)

        match = matches[0]
        face = match.get("Face") or {}
        return SearchFaceResponse(
            success=True,
            faceFound=True,
            matchedUserId=face.get("ExternalImageId"),
            similarity=match.get("Similarity"),
            faceId=face.get("FaceId"),
        )

    async def compare_faces(
        self,
        source_bytes: bytes,
        target_bytes: bytes,
        threshold: float = 80.0,
    ) -> CompareFacesResponse:
        data = await self._call(
            self.client.compare_faces,
            SourceImage={"Bytes": source_bytes},
            TargetImage={"Bytes": target_bytes},
            SimilarityThreshold=threshold,
        )
        matches = data.get("FaceMatches") or []
        if not matches:
            return CompareFacesResponse(success=True, match=False, similarity=0.0)

        similarity = float(matches[0].get("Similarity") or 0.0)
        return CompareFacesResponse(success=True, match=similarity >= threshold, similarity=similarity)

    async def delete_face(self, collection_id: str, face_id: str) -> DeleteFaceResponse:
        await self._call(
            self.client.delete_faces,
            CollectionId=collection_id,
            FaceIds=[face_id],
        )
        return DeleteFaceResponse(success=True)

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if callable(close):
            close()
