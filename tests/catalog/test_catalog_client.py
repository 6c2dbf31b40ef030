"""
Tests for the MySwitzerland activity catalog
"""

import os
from unittest.mock import Mock, patch

import httpx
import pytest

from tripplanner.catalog.client import CatalogError, MySwitzerlandCatalog
from tripplanner.catalog.facets import facet_params, is_supported
from tripplanner.core.models import Coordinate, Preference

ATTRACTIONS = {
    "data": [
        {
            "name": "Chillon Castle",
            "abstract": "Island castle on Lake Geneva",
            "geo": {"latitude": 46.4142, "longitude": 6.9275},
            "image": [{"url": "https://img.example/chillon.jpg"}, {"url": ""}],
        },
        {
            "name": "Somewhere without coordinates",
            "abstract": "Skipped",
        },
        {
            "geo": {"latitude": 46.5, "longitude": 6.6},
        },
    ]
}


def json_response(body):
    response = Mock()
    response.json.return_value = body
    response.raise_for_status.return_value = None
    return response


class TestFacets:
    """Test preference to facet mapping"""

    def test_scheduling_preferences_unsupported(self):
        """Test that pace preferences have no facet"""
        assert is_supported(Preference.HIKE)
        for preference in (
            Preference.QUICK,
            Preference.SLOW_PACE,
            Preference.EARLY_BIRD,
            Preference.NIGHT_OWL,
            Preference.INTERMEDIATE_STOPS,
        ):
            assert not is_supported(preference)

    def test_facet_params_combine(self):
        """Test that several preferences are ANDed into one filter"""
        params = facet_params([Preference.WHEELCHAIR_ACCESSIBLE, Preference.HIKE])

        assert params == {
            "facets": "wheelchairaccessibleclassifications,sporttype",
            "facet.filter": "wheelchairaccessibleclassifications:*,sporttype:hike",
        }

    def test_facet_params_empty(self):
        """Test that unsupported preferences add no filter"""
        assert facet_params([Preference.SLOW_PACE]) == {}


class TestMySwitzerlandCatalog:
    """Test MySwitzerland catalog client"""

    def test_client_initialization(self):
        """Test client initialization with a key"""
        catalog = MySwitzerlandCatalog(api_key="test_key")

        assert catalog.base_url == "https://opendata.myswitzerland.io/v1"
        assert catalog.headers["x-api-key"] == "test_key"
        assert catalog.language == "en"

    def test_client_missing_key(self):
        """Test initialization without a key"""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="MySwitzerland API key required"):
                MySwitzerlandCatalog()

    @pytest.mark.asyncio
    async def test_activities_near(self):
        """Test proximity search and response parsing"""
        catalog = MySwitzerlandCatalog(api_key="test_key")

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.return_value = json_response(ATTRACTIONS)

            activities = await catalog.get_activities_near(
                Coordinate(latitude=46.5197, longitude=6.6323), radius_meters=15000, limit=20
            )

            call_args = mock_get.call_args
            assert call_args[0][0] == "https://opendata.myswitzerland.io/v1/attractions/"
            params = call_args[1]["params"]
            assert params["geo.dist"] == "46.5197,6.6323,15000"
            assert params["hitsPerPage"] == 20
            assert params["lang"] == "en"
            assert "facets" not in params

        assert len(activities) == 2
        castle = activities[0]
        assert castle.name == "Chillon Castle"
        assert castle.description == "Island castle on Lake Geneva"
        assert castle.location.coordinate == Coordinate(latitude=46.4142, longitude=6.9275)
        assert castle.image_urls == ["https://img.example/chillon.jpg"]
        assert castle.location.image_url == "https://img.example/chillon.jpg"
        assert castle.estimated_time == 3600
        assert activities[1].name == "Unknown Activity"
        assert activities[1].description == "No description"

    @pytest.mark.asyncio
    async def test_activities_by_preferences(self):
        """Test facet search tags activities with the queried preferences"""
        catalog = MySwitzerlandCatalog(api_key="test_key")
        preferences = [Preference.WHEELCHAIR_ACCESSIBLE, Preference.MUSEUMS]

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.return_value = json_response(ATTRACTIONS)

            activities = await catalog.get_activities_by_preferences(preferences, limit=100)

            params = mock_get.call_args[1]["params"]
            assert params["facets"] == "wheelchairaccessibleclassifications,museumtype"
            assert params["hitsPerPage"] == 100

        assert activities[0].preferences == preferences

    @pytest.mark.asyncio
    async def test_empty_payload(self):
        """Test a response without data"""
        catalog = MySwitzerlandCatalog(api_key="test_key")

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.return_value = json_response({})

            assert await catalog.get_activities_by_preferences([Preference.HIKE]) == []

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        """Test that request failures are surfaced"""
        catalog = MySwitzerlandCatalog(api_key="test_key")

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.side_effect = httpx.HTTPError("API Error")

            with pytest.raises(CatalogError, match="API Error"):
                await catalog.get_activities_near(Coordinate(latitude=46.0, longitude=7.0))

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        """Test that a non-JSON body is surfaced"""
        catalog = MySwitzerlandCatalog(api_key="test_key")

        with patch("httpx.AsyncClient.get") as mock_get:
            response = Mock()
            response.raise_for_status.return_value = None
            response.json.side_effect = ValueError("Expecting value")
            mock_get.return_value = response

            with pytest.raises(CatalogError, match="invalid JSON"):
                await catalog.get_activities_near(Coordinate(latitude=46.0, longitude=7.0))

    @pytest.mark.asyncio
    async def test_non_object_payload_raises(self):
        """Test that a JSON list instead of an object is surfaced"""
        catalog = MySwitzerlandCatalog(api_key="test_key")

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.return_value = json_response([{"name": "Chillon Castle"}])

            with pytest.raises(CatalogError, match="Unexpected catalog payload"):
                await catalog.get_activities_near(Coordinate(latitude=46.0, longitude=7.0))

    @pytest.mark.asyncio
    async def test_non_list_data_raises(self):
        """Test that a data field that is not a list is surfaced"""
        catalog = MySwitzerlandCatalog(api_key="test_key")

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.return_value = json_response({"data": {"name": "Chillon Castle"}})

            with pytest.raises(CatalogError, match="Unexpected catalog data"):
                await catalog.get_activities_by_preferences([Preference.HIKE])

    @pytest.mark.asyncio
    async def test_malformed_items_skipped(self):
        """Test that non-object items and bad geo blocks are skipped"""
        catalog = MySwitzerlandCatalog(api_key="test_key")
        payload = {
            "data": [
                "not an item",
                {"name": "Bad geo", "geo": [46.0, 7.0]},
                ATTRACTIONS["data"][0],
            ]
        }

        with patch("httpx.AsyncClient.get") as mock_get:
            mock_get.return_value = json_response(payload)

            activities = await catalog.get_activities_near(Coordinate(latitude=46.0, longitude=7.0))

        assert [activity.name for activity in activities] == ["Chillon Castle"]
