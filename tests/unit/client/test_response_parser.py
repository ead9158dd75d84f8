"""Tests for response parsers."""

from pydantic import BaseModel

from remote_client.client import DefaultResponseParser, DirectResponseParser
from tests.helpers.fakes import json_response


class User(BaseModel):
    """Decoded payload used in tests."""

    id: int
    name: str


class TestDefaultResponseParser:
    """Tests for DefaultResponseParser."""

    def test_wrapped_payload(self) -> None:
        """Test extraction of data, message and meta."""
        envelope = json_response(
            200,
            {
                "success": True,
                "data": {"id": 1, "name": "Ada"},
                "message": "ok",
                "meta": {"page": 1},
            },
        )

        parsed = DefaultResponseParser().parse(envelope, User.model_validate)

        assert parsed.data == User(id=1, name="Ada")
        assert parsed.message == "ok"
        assert parsed.meta == {"page": 1}
        assert parsed.is_success

    def test_success_flag_from_body(self) -> None:
        """Test that an explicit false success flag is kept."""
        parsed = DefaultResponseParser().parse(json_response(200, {"success": False}))

        assert not parsed.success
        assert not parsed.is_success

    def test_non_mapping_body(self) -> None:
        """Test that a non-object body yields an empty response."""
        parsed = DefaultResponseParser().parse(json_response(204, None))

        assert parsed.status_code == 204
        assert parsed.success
        assert not parsed.has_data

    def test_failing_decoder_leaves_data_empty(self) -> None:
        """Test that a decoder error does not fail parsing."""
        parsed = DefaultResponseParser().parse(
            json_response(200, {"data": {"id": "x"}}), User.model_validate
        )

        assert parsed.data is None

    def test_custom_keys(self) -> None:
        """Test configurable envelope keys."""
        parser = DefaultResponseParser(data_key="result", message_key="detail")

        parsed = parser.parse(json_response(200, {"result": [1], "detail": "fine"}))

        assert parsed.data == [1]
        assert parsed.message == "fine"


class TestDirectResponseParser:
    """Tests for DirectResponseParser."""

    def test_body_is_payload(self) -> None:
        """Test that the whole body is decoded."""
        parsed = DirectResponseParser().parse(
            json_response(201, {"id": 2, "name": "Lin"}), User.model_validate
        )

        assert parsed.data == User(id=2, name="Lin")
        assert parsed.success

    def test_without_decoder(self) -> None:
        """Test raw passthrough of the body."""
        parsed = DirectResponseParser().parse(json_response(200, [1, 2, 3]))

        assert parsed.data == [1, 2, 3]
