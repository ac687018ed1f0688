"""
Tests for postcode resolution.

The postcode service is replaced by httpx.MockTransport so every response
shape, including transport failures, can be produced without a network.
"""

import logging

import httpx
import pytest

from app.services.geocoder import LocationResolver, normalize_postcode


def make_resolver(handler) -> LocationResolver:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LocationResolver(client, base_url="https://postcodes.test")


def ok_response(postcode="SW1A 1AA", longitude=-0.1276, latitude=51.5074):
    return httpx.Response(
        200,
        json={
            "status": 200,
            "result": {"postcode": postcode, "longitude": longitude, "latitude": latitude},
        },
    )


class TestNormalizePostcode:
    """Test postcode normalization."""

    def test_uppercases_and_collapses_whitespace(self):
        """Postcodes are trimmed, upper-cased and single-spaced."""
        assert normalize_postcode("  sw1a   1aa ") == "SW1A 1AA"


class TestLocationResolver:
    """Test the postcode lookup client."""

    @pytest.mark.asyncio
    async def test_resolves_to_coordinate_and_canonical_postcode(self):
        """A hit returns coordinates and the canonical postcode."""
        requests = []

        def handler(request):
            requests.append(request)
            return ok_response()

        result = await make_resolver(handler).resolve("  sw1a1aa  ")

        assert result is not None
        assert result.coordinates == (-0.1276, 51.5074)
        assert result.postcode == "SW1A 1AA"
        assert len(requests) == 1
        # Input is trimmed before the lookup
        assert requests[0].url.raw_path == b"/postcodes/sw1a1aa"

    @pytest.mark.asyncio
    async def test_postcode_is_url_encoded(self):
        """The postcode is encoded into the request path."""
        paths = []

        def handler(request):
            paths.append(request.url.raw_path)
            return ok_response()

        await make_resolver(handler).resolve("SW1A 1AA")
        assert paths == [b"/postcodes/SW1A%201AA"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("postcode", ["", "   ", None])
    async def test_blank_postcode_makes_no_call(self, postcode):
        """Blank input resolves to None without a request."""
        calls = []

        def handler(request):
            calls.append(request)
            return ok_response()

        assert await make_resolver(handler).resolve(postcode) is None
        assert calls == []

    @pytest.mark.asyncio
    async def test_not_found(self, caplog):
        """A 404 resolves to None."""
        def handler(request):
            return httpx.Response(404, json={"status": 404, "error": "Postcode not found"})

        with caplog.at_level(logging.INFO, logger="app.services.geocoder"):
            assert await make_resolver(handler).resolve("ZZ99 9ZZ") is None
        assert "Postcode not found" in caplog.text

    @pytest.mark.asyncio
    async def test_body_without_result_is_not_found(self):
        """A body with no result is not found."""
        def handler(request):
            return httpx.Response(200, json={"status": 200, "result": None})

        assert await make_resolver(handler).resolve("ZZ99 9ZZ") is None

    @pytest.mark.asyncio
    async def test_null_coordinates_are_not_found(self):
        """Null coordinates are not found."""
        def handler(request):
            return ok_response(longitude=None, latitude=None)

        assert await make_resolver(handler).resolve("GIR 0AA") is None

    @pytest.mark.asyncio
    async def test_transport_error_is_logged_and_returns_none(self, caplog):
        """Transport errors are logged, not raised."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with caplog.at_level(logging.WARNING, logger="app.services.geocoder"):
            assert await make_resolver(handler).resolve("SW1A 1AA") is None
        assert "Postcode API error" in caplog.text

    @pytest.mark.asyncio
    async def test_server_error_returns_none(self, caplog):
        """5xx responses resolve to None."""
        def handler(request):
            return httpx.Response(503, text="unavailable")

        with caplog.at_level(logging.WARNING, logger="app.services.geocoder"):
            assert await make_resolver(handler).resolve("SW1A 1AA") is None
        assert "Postcode API error" in caplog.text

    @pytest.mark.asyncio
    async def test_malformed_json_returns_none(self):
        """Unparseable bodies resolve to None."""
        def handler(request):
            return httpx.Response(200, content=b"<html>not json</html>")

        assert await make_resolver(handler).resolve("SW1A 1AA") is None

    @pytest.mark.asyncio
    async def test_single_attempt_per_call(self):
        """No retries within one call."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        await make_resolver(handler).resolve("SW1A 1AA")
        assert len(calls) == 1
