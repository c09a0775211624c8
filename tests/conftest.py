"""
Pytest configuration and shared fixtures

Provides common fixtures for domain models, REST payloads and a client wired
to a mocked fetch layer.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from build_status.collectors.build_rest_client import BuildResolutionClient
from build_status.domain.builds import Build, BuildDefinition, Links, Project, Result, Status

ORG_URL = "https://devdiv.visualstudio.com"
PROJECT_ID = "0bdbc590-a062-4c3f-b0f6-9383f67865ee"
TEST_PAT = "test-pat-token-1234567890"


def links_json(kind: str = "build", entity_id: int = 1, badge: bool = False) -> dict:
    """Build a ``_links`` object as the service returns it"""
    links = {
        "self": {"href": f"{ORG_URL}/_apis/{kind}/{entity_id}"},
        "web": {"href": f"{ORG_URL}/_{kind}/{entity_id}"},
    }
    if badge:
        links["badge"] = {"href": f"{ORG_URL}/_apis/{kind}/status/{entity_id}"}
    return links


def build_json(build_id: int, branch: str = "refs/heads/main", **overrides) -> dict:
    """One entry of a builds listing"""
    payload = {
        "id": build_id,
        "buildNumber": f"20260210.{build_id}",
        "status": "completed",
        "result": "succeeded",
        "sourceBranch": branch,
        "sourceVersion": f"abc{build_id:04d}",
        "_links": links_json("build", build_id, badge=True),
    }
    payload.update(overrides)
    return payload


def mock_http_client(response_text: str = "", status_code: int = 200, side_effect=None) -> AsyncMock:
    """AsyncSecureHTTPClient stand-in usable as ``async with``"""
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.text = response_text
    mock_response.raise_for_status = Mock()

    client = AsyncMock()
    client.get = AsyncMock(return_value=mock_response, side_effect=side_effect)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    return client


# ===== Domain Model Fixtures =====


@pytest.fixture
def sample_project():
    """Provide the project every resolution starts from"""
    return Project(id=PROJECT_ID, name="DevDiv")


@pytest.fixture
def sample_links():
    """Provide a Links instance"""
    return Links(self_href=f"{ORG_URL}/_apis/build/1", web_href=f"{ORG_URL}/_build/1")


@pytest.fixture
def sample_definition(sample_project, sample_links):
    """Provide a BuildDefinition"""
    return BuildDefinition(id=5868, name="NuGet-Official", project=sample_project, links=sample_links)


@pytest.fixture
def sample_build(sample_definition, sample_links):
    """Provide a completed, succeeded Build without timeline"""
    return Build(
        id=1626454,
        build_number="20260210.1",
        status=Status.COMPLETED,
        result=Result.SUCCEEDED,
        links=sample_links,
        source_branch="refs/heads/main",
        source_commit="9f8e7d6c",
        build_definition=sample_definition,
    )


# ===== Client Fixtures =====


@pytest.fixture
def client():
    """Provide a client with a fresh cache"""
    return BuildResolutionClient(organization_url=ORG_URL, pat=TEST_PAT)


# ===== Payload Factories =====


@pytest.fixture
def make_links_json():
    """Provide the ``_links`` payload factory"""
    return links_json


@pytest.fixture
def make_build_json():
    """Provide the builds-listing entry factory"""
    return build_json


@pytest.fixture
def make_http_client():
    """Provide the AsyncSecureHTTPClient mock factory"""
    return mock_http_client
