from __future__ import annotations

import json

import jsonschema

"""BatchResult JSON contract returned to the uploader."""

BATCH_RESULT_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["total", "ok", "skipped", "errors", "results"],
    "properties": {
        "total": {"type": "integer", "minimum": 0},
        "ok": {"type": "integer", "minimum": 0},
        "skipped": {"type": "integer", "minimum": 0},
        "errors": {"type": "integer", "minimum": 0},
        "results": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": ["row", "status"],
                "properties": {
                    "row": {"type": "integer", "minimum": 2},
                    "status": {"enum": ["ok", "error", "skipped"]},
                    "qrUrl": {"type": "string"},
                    "error": {"type": "string"},
                },
            },
        },
    },
}

HEADERS = ["codigo", "nombres", "telefono", "denominacion", "estado", "numpases"]


def test_batch_result_json_matches_contract(orchestrator, workbook):
    data = workbook([
        HEADERS,
        ["A1", "Juan", "551", "Actor", "Activo", "2"],
        [None, None, None, None, None, None],
        ["A3", "", "553", "Actor", "Activo", "1"],
    ])
    result = orchestrator.process(data)
    payload = json.loads(json.dumps(result.to_dict()))

    jsonschema.validate(payload, BATCH_RESULT_SCHEMA)
    assert payload["total"] == payload["ok"] + payload["skipped"] + payload["errors"] == len(payload["results"])
    by_status = {r["status"]: r for r in payload["results"]}
    assert "qrUrl" in by_status["ok"] and "error" not in by_status["ok"]
    assert "error" in by_status["error"] and "qrUrl" not in by_status["error"]
    assert set(by_status["skipped"]) == {"row", "status"}
