"""
Tests for ApiClient and the fluent QueryBuilder.

End-to-end through httpx.MockTransport: what goes on the wire for each
chain, and what comes back.
"""

import asyncio

import httpx
import pytest

from restbase.client import ApiClient, QueryBuilder
from restbase.commands import Command
from restbase.errors import ConfigurationError
from restbase.models import FileUpload

IMAGE = FileUpload(b"\x89PNG-bytes", "photo.png", "image/png")


class TestReads:
    def test_filtered_read(self, client, backend):
        backend.respond(200, json_body=[{"id": 1, "name": "Math"}])

        result = asyncio.run(client.from_("subjects").eq("user_id", 7).select())

        assert result.data == [{"id": 1, "name": "Math"}]
        assert result.error is None
        assert backend.last.method == "GET"
        assert backend.last.url.path == "/api/subjects"
        assert list(backend.last.url.params.multi_items()) == [("user_id", "7")]

    def test_read_with_columns(self, client, backend):
        asyncio.run(client.from_("subjects").eq("user_id", 7).select("id,name"))
        assert backend.last.url.params["select"] == "id,name"

    def test_awaiting_builder_reads(self, client, backend):
        async def scenario():
            return await client.from_("subjects").eq("user_id", 7)

        result = asyncio.run(scenario())

        assert result.ok
        assert backend.last.method == "GET"

    def test_table_alias(self, client, backend):
        asyncio.run(client.table("subjects").execute())
        assert backend.last.url.path == "/api/subjects"


class TestMutations:
    def test_json_insert(self, client, backend, parse_json):
        backend.respond(201, json_body=[{"id": 5, "name": "Physics"}])

        result = asyncio.run(client.from_("subjects").insert({"name": "Physics"}).select())

        assert result.data == [{"id": 5, "name": "Physics"}]
        assert backend.last.method == "POST"
        assert backend.last.headers["content-type"] == "application/json"
        assert parse_json(backend.last) == {"name": "Physics"}

    def test_multipart_insert(self, client, backend, parse_multipart):
        result = asyncio.run(
            client.from_("projects").insert({"description": "X", "image": IMAGE}).select()
        )

        assert result.ok
        assert len(backend.requests) == 1
        request = backend.last
        assert request.method == "POST"
        assert request.url.path == "/api/projects"
        assert request.headers["content-type"].startswith("multipart/form-data; boundary=")
        parts = parse_multipart(request)
        assert parts["description"] == (None, b"X")
        assert parts["image"] == ("photo.png", b"\x89PNG-bytes")
        assert "image_url" not in parts

    def test_filters_before_insert_are_ignored(self, client, backend, parse_json):
        asyncio.run(
            client.from_("projects").eq("user_id", 7).insert({"description": "X"}).select()
        )

        assert str(backend.last.url) == "http://api.example.com/api/projects"
        assert "user_id" not in parse_json(backend.last)

    def test_json_update_is_patch(self, client, backend, parse_json):
        asyncio.run(
            client.from_("projects").update({"status": "finished"}).eq("id", 3).eq("user_id", 7).select()
        )

        assert backend.last.method == "PATCH"
        assert list(backend.last.url.params.multi_items()) == [("id", "3"), ("user_id", "7")]
        assert parse_json(backend.last) == {"status": "finished"}

    def test_multipart_update_tunnels_patch(self, client, backend, parse_multipart):
        asyncio.run(
            client.from_("projects")
            .update({"description": "Y", "checklist": [{"item": "a", "done": True}], "image": IMAGE})
            .eq("id", 3)
            .select()
        )

        request = backend.last
        assert request.method == "POST"
        assert request.url.params["id"] == "3"
        parts = parse_multipart(request)
        assert parts["_method"] == (None, b"PATCH")
        assert parts["checklist"] == (None, b'[{"item": "a", "done": true}]')

    def test_delete(self, client, backend):
        async def scenario():
            return await client.from_("projects").delete().eq("id", 3).eq("user_id", 7)

        asyncio.run(scenario())

        assert backend.last.method == "DELETE"
        assert backend.last.content == b""
        assert list(backend.last.url.params.multi_items()) == [("id", "3"), ("user_id", "7")]

    def test_insert_then_update_fails_before_sending(self, client, backend):
        builder = client.from_("projects").insert({"a": 1})
        with pytest.raises(ConfigurationError):
            builder.update({"a": 2})
        assert backend.requests == []

    def test_nested_binary_fails_before_sending(self, client, backend):
        command = Command("projects").insert({"files": [IMAGE]})
        with pytest.raises(ConfigurationError):
            asyncio.run(client.execute(command))
        assert backend.requests == []


class TestSingleExecution:
    """A command resolves at most once."""

    def test_second_terminal_on_builder_fails(self, client, backend):
        builder = client.from_("subjects").eq("user_id", 7)
        asyncio.run(builder.select())

        with pytest.raises(ConfigurationError):
            builder.select()
        assert len(backend.requests) == 1

    def test_builder_rejects_changes_after_terminal(self, client):
        builder = client.from_("subjects")
        asyncio.run(builder.select())

        with pytest.raises(ConfigurationError):
            builder.eq("id", 1)

    def test_executing_command_twice_fails(self, client, backend):
        command = Command("subjects").eq("user_id", 7)
        asyncio.run(client.execute(command))

        with pytest.raises(ConfigurationError):
            asyncio.run(client.execute(command))
        assert len(backend.requests) == 1

    def test_builder_exposes_its_command(self, client):
        builder = client.from_("subjects").eq("user_id", 7)
        assert isinstance(builder, QueryBuilder)
        assert dict(builder.command.filters) == {"user_id": 7}


class TestErrors:
    def test_http_error_is_returned(self, client, backend):
        backend.respond(422, json_body={"message": "Validation failed", "details": {"field": "email"}})

        result = asyncio.run(client.from_("subjects").insert({"name": ""}).select())

        assert result.data is None
        assert result.error.message == "Validation failed"
        assert result.error.status == 422
        assert result.error.details == {"field": "email"}

    def test_connection_refused_is_returned(self, client, backend):
        backend.fail(httpx.ConnectError("[Errno 111] Connection refused"))

        result = asyncio.run(client.from_("subjects").select())

        assert result.data is None
        assert result.error.status == 0
        assert result.error.message == "[Errno 111] Connection refused"
        assert result.error.details is None


class TestConfiguration:
    def test_absolute_api_base(self, backend, http_client):
        from restbase.config import RestbaseSettings

        settings = RestbaseSettings(_env_file=None, api_base="https://backend.test/v2/")
        client = ApiClient(settings, http_client=http_client)

        asyncio.run(client.from_("subjects").select())

        assert str(backend.last.url) == "https://backend.test/v2/subjects"

    def test_context_manager_closes_owned_transport(self, settings):
        async def scenario():
            async with ApiClient(settings) as client:
                return client

        client = asyncio.run(scenario())
        assert client.transport._http.is_closed
