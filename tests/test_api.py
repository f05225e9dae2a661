from __future__ import annotations

import json
import logging

from fastapi.testclient import TestClient

from api.main import create_app


def _client() -> TestClient:
    return TestClient(create_app())


def test_health_reports_formula_count():
    with _client() as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "formulas": 0, "version": "0.1.0"}


def test_register_get_list_and_delete_formula():
    with _client() as client:
        created = client.post("/formulas", json={"id": "f", "expression": "let t = x * 2; t + y"})
        fetched = client.get("/formulas/f")
        listed = client.get("/formulas")
        deleted = client.delete("/formulas/f")
        missing = client.get("/formulas/f")

    assert created.status_code == 201
    assert created.json() == {
        "id": "f",
        "expression": "let t = x * 2; t + y",
        "required_inputs": ["x", "y"],
        "local_variables": ["t"],
    }
    assert fetched.json()["id"] == "f"
    assert [item["id"] for item in listed.json()] == ["f"]
    assert deleted.status_code == 204
    assert missing.status_code == 404


def test_register_invalid_formula_returns_parse_error():
    with _client() as client:
        response = client.post("/formulas", json={"id": "bad", "expression": "a +"})
        listed = client.get("/formulas")

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"]["kind"] == "unexpected_end"
    assert detail["error"]["column"] == 3
    assert detail["rendered"].startswith("Parse error at line 1, column 3")
    assert listed.json() == []


def test_evaluate_registered_formula():
    with _client() as client:
        client.post("/formulas", json={"id": "dmg", "expression": "(baseDamage + bonus) * crit"})
        ok = client.post("/formulas/dmg/evaluate", json={"inputs": {"baseDamage": 12, "bonus": 3, "crit": 1.5}})
        missing_input = client.post("/formulas/dmg/evaluate", json={"inputs": {"baseDamage": 12}})
        unknown = client.post("/formulas/nope/evaluate", json={"inputs": {}})

    assert ok.status_code == 200
    assert ok.json()["value"] == 22.5
    assert missing_input.status_code == 400
    assert missing_input.json()["detail"]["kind"] == "missing_variable"
    assert missing_input.json()["detail"]["variable"] in {"bonus", "crit"}
    assert unknown.status_code == 404


def test_batch_evaluation_and_stats():
    with _client() as client:
        client.post("/formulas", json={"id": "double", "expression": "a * 2"})
        batch = client.post("/formulas/double/batch", json={"batch": [{"a": 1}, {"a": 2.5}]})
        stats = client.get("/stats")

    assert batch.json() == {"id": "double", "results": [2.0, 5.0]}
    assert stats.json() == {
        "formulas": 1,
        "runner": {"pooled_formula_count": 0, "pooling_enabled": True},
    }


def test_ad_hoc_evaluate_handles_special_values():
    with _client() as client:
        ok = client.post("/evaluate", json={"expression": "2^3^2"})
        infinite = client.post("/evaluate", json={"expression": "1 / 0"})
        bad = client.post("/evaluate", json={"expression": "(1"})

    assert ok.json() == {"value": 512.0, "display": "512.0", "required_inputs": []}
    assert infinite.json()["value"] is None
    assert infinite.json()["display"] == "inf"
    assert bad.status_code == 422


def test_check_returns_inputs_or_structured_error():
    with _client() as client:
        good = client.post("/check", json={"expression": "total += bonus; total"})
        bad = client.post("/check", json={"expression": "foo(1)"})

    assert good.json()["ok"] is True
    assert good.json()["required_inputs"] == ["bonus"]
    assert good.json()["local_variables"] == ["total"]
    assert bad.json()["ok"] is False
    assert bad.json()["error"]["kind"] == "unknown_function"
    assert "Unknown function: foo" in bad.json()["rendered"]


def test_formulas_file_is_preloaded(tmp_path, monkeypatch):
    path = tmp_path / "formulas.json"
    path.write_text(json.dumps({"formulas": [{"id": "regen", "expression": "baseRegen + vitality * 0.5"}]}))
    monkeypatch.setenv("FORMULA_KIT_FORMULAS_FILE", str(path))

    with _client() as client:
        health = client.get("/health")
        value = client.post("/formulas/regen/evaluate", json={"inputs": {"baseRegen": 2, "vitality": 4}})

    assert health.json()["formulas"] == 1
    assert value.json()["value"] == 4.0


def test_random_seed_setting_makes_results_reproducible(monkeypatch):
    monkeypatch.setenv("FORMULA_KIT_RANDOM_SEED", "5")

    with _client() as client:
        first = client.post("/evaluate", json={"expression": "random()"}).json()["value"]
    with _client() as client:
        second = client.post("/evaluate", json={"expression": "random()"}).json()["value"]

    assert first == second


def test_invalid_registration_is_parsed_once(caplog):
    with caplog.at_level(logging.WARNING, logger="formula_kit"):
        with _client() as client:
            response = client.post("/formulas", json={"id": "bad", "expression": "(1"})

    assert response.status_code == 422
    assert response.json()["detail"]["message"] == "Failed to register formula 'bad'"
    parser_warnings = [r for r in caplog.records if r.name == "formula_kit.parser"]
    assert len(parser_warnings) == 1


def test_openapi_documents_evaluation_error_body():
    with _client() as client:
        schema = client.get("/openapi.json").json()

    for path in ("/evaluate", "/formulas/{formula_id}/evaluate"):
        bad_request = schema["paths"][path]["post"]["responses"]["400"]
        ref = bad_request["content"]["application/json"]["schema"]["$ref"]
        assert ref.endswith("/EvalErrorResponse")
    detail = schema["components"]["schemas"]["EvalErrorResponse"]["properties"]["detail"]
    assert detail["$ref"].endswith("/EvalError")


def test_deeply_nested_expression_is_rejected_with_parse_error():
    with _client() as client:
        response = client.post("/evaluate", json={"expression": "(" * 200 + "1" + ")" * 200})

    assert response.status_code == 422
    assert response.json()["detail"]["error"]["kind"] == "nesting_too_deep"
