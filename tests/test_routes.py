import json
import uuid

from hookbin.capture import MAX_BODY_BYTES
from hookbin.errors import StorageFailure


def _new_token(client, **kwargs):
    resp = client.post("/api/tokens", **kwargs)
    assert resp.status_code == 200
    return resp.get_json()


def _logs(client, token, count=10):
    resp = client.get(f"/{token}/log/{count}")
    assert resp.status_code == 200
    return resp.get_json()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_index_lists_endpoints(client):
    body = client.get("/").get_json()
    assert body["name"] == "hookbin"
    assert "POST /api/tokens" in body["endpoints"]


def test_create_token_derives_url_from_host(client):
    token = _new_token(client)
    assert set(token) == {"token", "created_at", "webhook_url"}
    assert token["webhook_url"] == f"http://localhost/{token['token']}"


def test_create_token_behind_proxy(client):
    token = _new_token(
        client,
        headers={"X-Forwarded-Proto": "https", "X-Forwarded-Host": "hooks.example.com"},
    )
    assert token["webhook_url"] == f"https://hooks.example.com/{token['token']}"


def test_list_tokens_newest_first(client, clock):
    first = _new_token(client)
    clock.advance_seconds(1)
    second = _new_token(client)

    resp = client.get("/api/tokens")
    assert resp.status_code == 200
    assert [t["token"] for t in resp.get_json()] == [second["token"], first["token"]]


def test_get_with_query_and_header_is_captured(client):
    token = _new_token(client)["token"]

    resp = client.get(f"/{token}?a=1&a=2", headers={"X-Test": "v1"})
    assert resp.status_code == 200
    ack = resp.get_json()
    assert ack["status"] == "received"
    assert uuid.UUID(ack["id"])

    [record] = _logs(client, token)
    assert record["Id"] == ack["id"]
    assert record["Date"] == ack["timestamp"]
    assert record["TokenId"] == token
    assert record["Message"] is None
    message = record["MessageObject"]
    assert message["Method"] == "GET"
    assert message["Value"] == f"/{token}?a=1&a=2"
    assert message["QueryParameters"] == ["a=1", "a=2"]
    assert message["Headers"]["X-Test"] == ["v1"]
    assert message["Body"] is None
    assert message["BodyObject"] is None


def test_json_post_is_parsed(client):
    token = _new_token(client)["token"]

    resp = client.post(f"/{token}", data='{"k":1}', content_type="application/json")
    assert resp.status_code == 200

    message = _logs(client, token)[0]["MessageObject"]
    assert message["Method"] == "POST"
    assert message["Body"] == '{"k":1}'
    assert message["BodyObject"] == {"k": 1}


def test_plain_text_post_keeps_text_only(client):
    token = _new_token(client)["token"]

    resp = client.post(f"/{token}", data="plain text", content_type="text/plain")
    assert resp.status_code == 200

    message = _logs(client, token)[0]["MessageObject"]
    assert message["Body"] == "plain text"
    assert message["BodyObject"] is None


def test_extra_path_and_any_method_are_captured(client):
    token = _new_token(client)["token"]

    assert client.put(f"/{token}/github/events", data="x").status_code == 200
    assert client.patch(f"/{token}").status_code == 200

    values = [(r["MessageObject"]["Method"], r["MessageObject"]["Value"]) for r in _logs(client, token)]
    assert sorted(values) == sorted([("PUT", f"/{token}/github/events"), ("PATCH", f"/{token}")])


def test_unknown_token_returns_404_and_stores_nothing(client):
    token = str(uuid.uuid4())

    resp = client.get(f"/{token}")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Token not found", "status": 404}
    assert _logs(client, token) == []


def test_malformed_token_returns_400(client):
    resp = client.post("/not-a-uuid", data="x")
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["status"] == 400
    assert body["error"].startswith("Invalid token format")


def test_browser_files_are_not_found(client):
    resp = client.get("/favicon.ico")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Resource not found", "status": 404}


def test_body_size_boundary(client):
    token = _new_token(client)["token"]

    assert client.post(f"/{token}", data=b"a" * MAX_BODY_BYTES).status_code == 200

    resp = client.post(f"/{token}", data=b"a" * (MAX_BODY_BYTES + 1))
    assert resp.status_code == 413
    assert resp.get_json() == {"error": "Request body too large", "status": 413}
    assert len(_logs(client, token)) == 1


def test_log_count_is_clamped(client):
    token = _new_token(client)["token"]
    client.get(f"/{token}")

    assert len(_logs(client, token, 5000)) == 1


def test_logs_newest_first(client, clock):
    token = _new_token(client)["token"]
    for n in range(3):
        client.post(f"/{token}?n={n}")
        clock.advance_seconds(1)

    records = _logs(client, token, 3)
    assert [r["MessageObject"]["QueryParameters"] for r in records] == [["n=2"], ["n=1"], ["n=0"]]


def test_delete_token_cascades(client):
    token = _new_token(client)["token"]
    client.post(f"/{token}", data="one")
    client.post(f"/{token}", data="two")

    resp = client.delete(f"/api/tokens/{token}")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "deleted"}

    assert _logs(client, token) == []
    assert client.get(f"/{token}").status_code == 404
    assert token not in [t["token"] for t in client.get("/api/tokens").get_json()]


def test_delete_twice_succeeds(client):
    token = str(uuid.uuid4())
    assert client.delete(f"/api/tokens/{token}").status_code == 200
    assert client.delete(f"/api/tokens/{token}").status_code == 200


def test_storage_fault_hides_details(app, client, monkeypatch):
    token = _new_token(client)["token"]
    storage = app.extensions["hookbin"].storage

    def broken(request):
        raise StorageFailure("disk I/O error at /var/lib/hooks.db")

    monkeypatch.setattr(storage, "store_request", broken)

    resp = client.post(f"/{token}", data="x")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error", "status": 500}
    assert "disk" not in resp.get_data(as_text=True)


def test_wrong_method_gets_json_error(client):
    resp = client.post("/")
    assert resp.status_code == 405
    assert resp.get_json()["status"] == 405


def test_header_order_survives_json_response(client):
    token = _new_token(client)["token"]
    client.post(
        f"/{token}",
        data=json.dumps({"z": 1, "a": 2}),
        content_type="application/json",
        headers={"X-Zulu": "1", "X-Alpha": "2"},
    )

    message = _logs(client, token)[0]["MessageObject"]
    names = list(message["Headers"])
    assert names.index("X-Zulu") < names.index("X-Alpha")
    assert list(message["BodyObject"]) == ["z", "a"]


def test_negative_log_count_reads_nothing(client):
    token = _new_token(client)["token"]
    client.post(f"/{token}", data="x")

    resp = client.get(f"/{token}/log/-1")
    assert resp.status_code == 200
    assert resp.get_json() == []
    assert len(_logs(client, token)) == 1


def test_non_numeric_log_count_is_rejected_without_capturing(client):
    token = _new_token(client)["token"]

    resp = client.get(f"/{token}/log/abc")
    assert resp.status_code == 400
    assert resp.get_json()["status"] == 400
    assert resp.get_json()["error"].startswith("Invalid log count")

    assert client.get(f"/{token}/log/1.5").status_code == 400
    assert _logs(client, token) == []


def test_repeated_headers_arrive_joined(client):
    token = _new_token(client)["token"]

    client.get(f"/{token}", headers=[("X-Foo", "a"), ("X-Foo", "b")])

    message = _logs(client, token)[0]["MessageObject"]
    # The WSGI layer folds repeats into one line before the app sees them.
    assert message["Headers"]["X-Foo"] == ["a, b"]


def test_unsupported_token_api_methods_get_405(client):
    resp = client.put("/api/tokens")
    assert resp.status_code == 405
    assert resp.get_json() == {"error": "Method Not Allowed", "status": 405}
    assert set(resp.headers["Allow"].split(", ")) == {"GET", "POST"}

    resp = client.get(f"/api/tokens/{uuid.uuid4()}")
    assert resp.status_code == 405
    assert resp.headers["Allow"] == "DELETE"


def test_unknown_api_path_is_not_found(client):
    resp = client.get("/api/nothing/here")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Resource not found", "status": 404}
