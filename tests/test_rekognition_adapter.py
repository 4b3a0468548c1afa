"""Tests for the Rekognition adapter against stubbed AWS responses."""

from __future__ import annotations

import pytest
from botocore.exceptions import NoCredentialsError, ParamValidationError
from botocore.stub import ANY, Stubber

from face_gateway.core.errors import CREDENTIALS_MESSAGE, BadRequestError, ProviderError
from face_gateway.services.adapters.face_rekognition_adapter import (
    FaceRekognitionAdapter,
    translate_error,
)

from conftest import FACE_IMAGE, OTHER_FACE_IMAGE

FACE_ID = "11111111-2222-3333-4444-555555555555"
IMAGE_ID = "66666666-7777-8888-9999-000000000000"
COLLECTION_ARN = "aws:rekognition:us-east-1:123456789012:collection/test-faces"


@pytest.fixture
def adapter(rekognition_client, stubber: Stubber) -> FaceRekognitionAdapter:
    return FaceRekognitionAdapter(region="us-east-1", client=rekognition_client)


def _stub_create(stubber: Stubber, collection_id: str = "test-faces") -> None:
    stubber.add_response(
        "create_collection",
        {"StatusCode": 200, "CollectionArn": COLLECTION_ARN, "FaceModelVersion": "7.0"},
        {"CollectionId": collection_id},
    )


@pytest.mark.asyncio
async def test_ensure_collection_creates_then_reports_existing(adapter, stubber: Stubber) -> None:
    stubber.add_response("list_collections", {"CollectionIds": ["other"]}, {})
    _stub_create(stubber)
    stubber.add_response("list_collections", {"CollectionIds": ["other", "test-faces"]}, {})

    first = await adapter.ensure_collection("test-faces")
    second = await adapter.ensure_collection("test-faces")

    assert first.created is True
    assert second.created is False
    assert second.collection_id == "test-faces"


@pytest.mark.asyncio
async def test_ensure_collection_follows_list_pagination(adapter, stubber: Stubber) -> None:
    stubber.add_response("list_collections", {"CollectionIds": ["a"], "NextToken": "page-2"}, {})
    stubber.add_response("list_collections", {"CollectionIds": ["test-faces"]}, {"NextToken": "page-2"})

    result = await adapter.ensure_collection("test-faces")

    assert result.created is False


@pytest.mark.asyncio
async def test_ensure_collection_falls_through_when_listing_is_denied(adapter, stubber: Stubber) -> None:
    stubber.add_client_error("list_collections", "AccessDeniedException", "not authorized", 400)
    _stub_create(stubber)

    result = await adapter.ensure_collection("test-faces")

    assert result.created is True


@pytest.mark.asyncio
async def test_ensure_collection_treats_already_exists_as_success(adapter, stubber: Stubber) -> None:
    stubber.add_client_error("list_collections", "AccessDeniedException", "not authorized", 400)
    stubber.add_client_error(
        "create_collection", "ResourceAlreadyExistsException", "collection exists", 400
    )

    result = await adapter.ensure_collection("test-faces")

    assert result.created is False


@pytest.mark.asyncio
async def test_ensure_collection_propagates_other_create_failures(adapter, stubber: Stubber) -> None:
    stubber.add_response("list_collections", {"CollectionIds": []}, {})
    stubber.add_client_error("create_collection", "ServiceQuotaExceededException", "too many", 400)

    with pytest.raises(ProviderError) as excinfo:
        await adapter.ensure_collection("test-faces")

    assert excinfo.value.provider_code == "ServiceQuotaExceededException"
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
async def test_index_face_returns_face_record(adapter, stubber: Stubber) -> None:
    stubber.add_response(
        "index_faces",
        {
            "FaceRecords": [
                {
                    "Face": {
                        "FaceId": FACE_ID,
                        "ImageId": IMAGE_ID,
                        "ExternalImageId": "user-1",
                        "Confidence": 99.87,
                    }
                }
            ]
        },
        {
            "CollectionId": "test-faces",
            "Image": {"Bytes": FACE_IMAGE},
            "ExternalImageId": "user-1",
            "DetectionAttributes": ["ALL"],
            "MaxFaces": 1,
            "QualityFilter": "AUTO",
        },
    )

    result = await adapter.index_face("test-faces", FACE_IMAGE, "user-1")

    assert result.success is True
    assert result.faceId == FACE_ID
    assert result.externalImageId == "user-1"
    assert result.confidence == pytest.approx(99.87)
    assert result.errorMessage is None


@pytest.mark.asyncio
async def test_index_face_without_detected_face_is_structured_failure(adapter, stubber: Stubber) -> None:
    stubber.add_response("index_faces", {"FaceRecords": [], "UnindexedFaces": []}, None)

    result = await adapter.index_face("test-faces", FACE_IMAGE, "user-1")

    assert result.success is False
    assert result.errorMessage
    assert result.faceId is None
    assert result.externalImageId is None
    assert result.confidence is None


@pytest.mark.asyncio
async def test_search_face_without_match(adapter, stubber: Stubber) -> None:
    stubber.add_response(
        "search_faces_by_image",
        {"FaceMatches": [], "SearchedFaceConfidence": 99.0},
        {
            "CollectionId": "test-faces",
            "Image": {"Bytes": FACE_IMAGE},
            "FaceMatchThreshold": 80.0,
            "MaxFaces": 1,
        },
    )

    result = await adapter.search_face("test-faces", FACE_IMAGE, threshold=80.0)

    assert result.success is True
    assert result.faceFound is False
    assert result.matchedUserId is None


@pytest.mark.asyncio
async def test_search_face_returns_best_match(adapter, stubber: Stubber) -> None:
    stubber.add_response(
        "search_faces_by_image",
        {
            "FaceMatches": [
                {"Similarity": 98.5, "Face": {"FaceId": FACE_ID, "ExternalImageId": "user-1"}},
            ]
        },
        {"CollectionId": "test-faces", "Image": ANY, "FaceMatchThreshold": 90.0, "MaxFaces": 1},
    )

    result = await adapter.search_face("test-faces", FACE_IMAGE, threshold=90.0)

    assert result.faceFound is True
    assert result.matchedUserId == "user-1"
    assert result.similarity == pytest.approx(98.5)
    assert result.faceId == FACE_ID


@pytest.mark.asyncio
async def test_compare_identical_faces_matches(adapter, stubber: Stubber) -> None:
    stubber.add_response(
        "compare_faces",
        {"FaceMatches": [{"Similarity": 99.99, "Face": {"Confidence": 99.9}}]},
        {
            "SourceImage": {"Bytes": FACE_IMAGE},
            "TargetImage": {"Bytes": FACE_IMAGE},
            "SimilarityThreshold": 80.0,
        },
    )

    result = await adapter.compare_faces(FACE_IMAGE, FACE_IMAGE, threshold=80.0)

    assert result.match is True
    assert result.similarity == pytest.approx(99.99)


@pytest.mark.asyncio
async def test_compare_without_corresponding_faces(adapter, stubber: Stubber) -> None:
    stubber.add_response("compare_faces", {"FaceMatches": [], "UnmatchedFaces": []}, None)

    result = await adapter.compare_faces(FACE_IMAGE, OTHER_FACE_IMAGE, threshold=80.0)

    assert result.match is False
    assert result.similarity == 0.0


@pytest.mark.asyncio
async def test_compare_below_threshold_is_not_a_match(adapter, stubber: Stubber) -> None:
    stubber.add_response("compare_faces", {"FaceMatches": [{"Similarity": 85.0}]}, None)

    result = await adapter.compare_faces(FACE_IMAGE, OTHER_FACE_IMAGE, threshold=90.0)

    assert result.match is False
    assert result.similarity == pytest.approx(85.0)


@pytest.mark.asyncio
async def test_delete_face(adapter, stubber: Stubber) -> None:
    stubber.add_response(
        "delete_faces",
        {"DeletedFaces": [FACE_ID]},
        {"CollectionId": "test-faces", "FaceIds": [FACE_ID]},
    )

    result = await adapter.delete_face("test-faces", FACE_ID)

    assert result.success is True


@pytest.mark.asyncio
async def test_provider_error_keeps_upstream_status(adapter, stubber: Stubber) -> None:
    stubber.add_client_error(
        "search_faces_by_image", "InvalidParameterException", "There are no faces in the image.", 400
    )

    with pytest.raises(ProviderError) as excinfo:
        await adapter.search_face("test-faces", FACE_IMAGE)

    error = excinfo.value
    assert error.status_code == 400
    assert error.error_name == "InvalidParameterException"
    assert error.message == "There are no faces in the image."


def test_translate_error_masks_missing_credentials() -> None:
    error = translate_error(NoCredentialsError())

    assert isinstance(error, ProviderError)
    assert error.credentials_error is True
    assert error.message == CREDENTIALS_MESSAGE
    assert error.status_code == 500


def test_translate_error_maps_param_validation_to_bad_request() -> None:
    error = translate_error(ParamValidationError(report="Invalid length for parameter ExternalImageId"))

    assert isinstance(error, BadRequestError)
