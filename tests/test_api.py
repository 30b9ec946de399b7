import gzip
import os
import time

import pytest
from fastapi.testclient import TestClient

from model_store.main import create_app

MODEL = b"glTF\x02\x00\x00\x00" + bytes(range(256)) * 64


def send_chunk(client, session_id, index, data):
    return client.post(
        "/upload-chunk",
        data={"fileId": session_id, "chunkIndex": str(index)},
        files={"chunk": (f"chunk_{index}", data, "application/octet-stream")},
    )


def upload_model(client, session_id, payload, chunk_size=4096, order=None):
    chunks = [payload[i:i + chunk_size] for i in range(0, len(payload), chunk_size)]
    for index in order if order is not None else range(len(chunks)):
        assert send_chunk(client, session_id, index, chunks[index]).status_code == 200
    return len(chunks)


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_full_upload_lifecycle(client):
    model = b"glTF" + os.urandom(20000)
    payload = gzip.compress(model)
    total = upload_model(client, "s1", payload, chunk_size=4096)
    assert total > 1
    
    response = client.post("/finalize-upload", json={"fileId": "s1", "totalChunks": total, "fileName": "scene"})
    assert response.status_code == 200
    body = response.json()
    assert body["asset_name"] == "scene.glb"
    assert body["size_bytes"] == len(model)
    assert body["optimized"] is False
    
    listing = client.get("/models").json()
    assert [(m["name"], m["size"]) for m in listing] == [("scene.glb", len(model))]
    
    download = client.get("/models/scene.glb")
    assert download.status_code == 200
    assert download.content == model
    assert download.headers["content-type"] == "model/gltf-binary"
    assert "immutable" in download.headers["cache-control"]
    assert "max-age=31536000" in download.headers["cache-control"]
    assert "etag" in download.headers
    
    assert client.delete("/models/scene.glb").json() == {"name": "scene.glb", "status": "deleted"}
    assert client.get("/models").json() == []
    assert client.delete("/models/scene.glb").status_code == 404
    assert client.get("/models/scene.glb").status_code == 404


def test_out_of_order_chunks_and_snake_case_finalize(client):
    total = upload_model(client, "s2", MODEL, chunk_size=3000, order=[5, 0, 3, 1, 4, 2])
    assert total == 6
    
    response = client.post("/finalize-upload", json={"session_id": "s2", "total_chunks": 6, "file_name": "robot.glb"})
    
    assert response.status_code == 200
    assert response.json()["asset_name"] == "robot.glb"
    assert client.get("/models/robot.glb").content == MODEL


def test_repeat_uploads_get_unique_names(client):
    names = []
    for session_id in ("a", "b", "c"):
        send_chunk(client, session_id, 0, MODEL)
        response = client.post("/finalize-upload", json={"fileId": session_id, "totalChunks": 1, "fileName": "model"})
        names.append(response.json()["asset_name"])
    
    assert names == ["model.glb", "model_1.glb", "model_2.glb"]
    assert {m["name"] for m in client.get("/models").json()} == set(names)


@pytest.mark.parametrize(
    "data, files",
    [
        ({"chunkIndex": "0"}, {"chunk": ("c", b"x")}),
        ({"fileId": "s1"}, {"chunk": ("c", b"x")}),
        ({"fileId": "s1", "chunkIndex": "0"}, None),
        ({"fileId": "s1", "chunkIndex": "-1"}, {"chunk": ("c", b"x")}),
        ({"fileId": "s1", "chunkIndex": "²"}, {"chunk": ("c", b"x")}),
        ({"fileId": "s" * 129, "chunkIndex": "0"}, {"chunk": ("c", b"x")}),
        ({"fileId": "../s1", "chunkIndex": "0"}, {"chunk": ("c", b"x")}),
        ({"fileId": "s1", "chunkIndex": "0"}, {"chunk": ("c", b"")}),
    ],
)
def test_upload_chunk_rejects_bad_input(client, data, files):
    response = client.post("/upload-chunk", data=data, files=files)
    assert response.status_code == 400


def test_finalize_errors(client):
    assert client.post("/finalize-upload", json={"fileId": "ghost", "totalChunks": 1, "fileName": "x"}).status_code == 404
    
    send_chunk(client, "s1", 0, b"a")
    send_chunk(client, "s1", 2, b"c")
    
    assert client.post("/finalize-upload", json={"fileId": "s1", "totalChunks": 3}).status_code == 400
    assert client.post("/finalize-upload", json={"fileId": "s1", "fileName": "x"}).status_code == 400
    assert client.post("/finalize-upload", json={"fileId": "s1", "totalChunks": "three", "fileName": "x"}).status_code == 400
    
    response = client.post("/finalize-upload", json={"fileId": "s1", "totalChunks": 3, "fileName": "x"})
    assert response.status_code == 400
    assert response.json()["detail"]["missing_index"] == 1
    assert client.get("/models").json() == []
    assert client.get("/upload/s1/status").status_code == 404


def test_finalize_without_body(client):
    assert client.post("/finalize-upload").status_code == 400


def test_malformed_gzip_returns_server_error(client):
    send_chunk(client, "s1", 0, b"\x1f\x8b" + b"garbage" * 10)
    
    response = client.post("/finalize-upload", json={"fileId": "s1", "totalChunks": 1, "fileName": "x"})
    
    assert response.status_code == 500
    assert client.get("/models").json() == []
    assert client.get("/upload/s1/status").status_code == 404


def test_unavailable_optimizer_still_succeeds(test_settings):
    test_settings.ENABLE_OPTIMIZATION = True
    test_settings.OPTIMIZER_COMMAND = "definitely-not-an-installed-optimizer -i {input} -o {output} -d"
    
    with TestClient(create_app(test_settings)) as client:
        send_chunk(client, "s1", 0, gzip.compress(MODEL))
        response = client.post("/finalize-upload", json={"fileId": "s1", "totalChunks": 1, "fileName": "scene"})
        
        assert response.status_code == 200
        assert response.json()["optimized"] is False
        assert client.get("/models/scene.glb").content == MODEL


def test_non_executable_optimizer_still_succeeds(test_settings, tmp_path):
    tool = tmp_path / "optimize.sh"
    tool.write_text("#!/bin/sh\ncp \"$1\" \"$2\"\n")
    tool.chmod(0o644)
    test_settings.ENABLE_OPTIMIZATION = True
    test_settings.OPTIMIZER_COMMAND = f"{tool} {{input}} {{output}}"
    
    with TestClient(create_app(test_settings)) as client:
        send_chunk(client, "s1", 0, gzip.compress(MODEL))
        response = client.post("/finalize-upload", json={"fileId": "s1", "totalChunks": 1, "fileName": "scene"})
        
        assert response.status_code == 200
        assert response.json()["optimized"] is False
        assert client.get("/models/scene.glb").content == MODEL


def test_session_status_and_cancel(client):
    send_chunk(client, "s1", 1, b"bb")
    send_chunk(client, "s1", 0, b"a")
    
    status = client.get("/upload/s1/status").json()
    assert status["received_chunks"] == [0, 1]
    assert status["total_bytes"] == 3
    
    assert client.delete("/upload/s1").json() == {"session_id": "s1", "status": "cancelled"}
    assert client.get("/upload/s1/status").status_code == 404
    assert client.delete("/upload/s1").status_code == 404
    assert client.post("/finalize-upload", json={"fileId": "s1", "totalChunks": 2, "fileName": "x"}).status_code == 404


@pytest.mark.parametrize("path", ["/models/..%5Csecret.glb", "/models/a..b.glb", "/models/.hidden.glb"])
def test_unsafe_asset_names_rejected(client, path):
    assert client.get(path).status_code == 400
    assert client.delete(path).status_code == 400


def test_list_newest_first(client):
    for session_id, name in (("a", "first"), ("b", "second")):
        send_chunk(client, session_id, 0, MODEL)
        client.post("/finalize-upload", json={"fileId": session_id, "totalChunks": 1, "fileName": name})
    
    registry = client.app.state.registry
    now = time.time()
    os.utime(registry.root / "first.glb", (now - 120, now - 120))
    
    assert [m["name"] for m in client.get("/models").json()] == ["second.glb", "first.glb"]
