from typing import Optional, Dict, Any
from fastapi.testclient import TestClient

def api_call(client: TestClient, method: str, path: str, json: Optional[Dict[str, Any]] = None, expected_min: int = 200, expected_max: int = 300):
    response = client.request(method, path, json=json)
    ok = expected_min <= response.status_code < expected_max
    try:
        body = response.json()
    except Exception:
        body = response.text
    assert ok, f"{method} {path} => {response.status_code}, body={body}, json={json}"
    return response

def data_of(response) -> Any:
    return response.json().get("data")

def error_of(response) -> Dict[str, Any]:
    return response.json().get("error", {})
