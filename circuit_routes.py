"""
회로 Flask Blueprint — 피보나치 Mock Prover 엔드포인트
=========================================================

configure → synthesize → check 흐름을 웹에서 단계별로 살펴볼 수 있게 한다.
결과는 TinyDB에 저장되어 GET으로 다시 조회할 수 있다.

  GET  /circuit/fibonacci        마지막 실행 결과 (없으면 {})
  POST /circuit/fibonacci/run    a, b, steps, k, public_output(선택) 으로 실행
  POST /circuit/fibonacci/clear  저장된 결과 삭제
"""

import logging

from flask import Blueprint, current_app, jsonify, request
from tinydb import Query

from plonkish.dev import MockProver
from plonkish.errors import PlonkishError
from plonkish.fibonacci import FibonacciCircuit, fibonacci_term
from plonkish.field import FR

from circuit_serializers import (
    serialize_fr,
    serialize_grid,
    serialize_regions,
    serialize_copy_classes,
    serialize_failure,
)


logger = logging.getLogger(__name__)

circuit_bp = Blueprint('circuit', __name__, url_prefix='/circuit')

DATA = Query()

# DB는 app.py에서 주입
DB = None


def init_circuit_bp(db):
    """app.py에서 DB를 주입받는다."""
    global DB
    DB = db


# ─── DB 헬퍼 ───

def db_get(key):
    """DB에서 키로 데이터를 조회한다."""
    result = DB.search(DATA.type == key)
    if not result:
        return None
    return result[0].get("data")


def db_set(key, data):
    """DB에 키로 데이터를 저장한다."""
    DB.upsert({"type": key, "data": data}, DATA.type == key)


def db_remove_prefix(prefix):
    """prefix로 시작하는 모든 키를 삭제한다."""
    DB.remove(DATA.type.test(lambda t: t.startswith(prefix)))


# ─── 요청 파라미터 ───

def _params():
    data = request.get_json(silent=True)
    if data is None:
        data = request.form
    return data


def _int_param(data, name, default=None):
    raw = data.get(name, default)
    if raw is None or raw == "":
        if default is None:
            raise ValueError(f"'{name}' 값이 필요합니다")
        return default
    # JSON의 true / 1.5 는 정수로 받지 않는다
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            pass
    raise ValueError(f"'{name}'은(는) 정수여야 합니다: {raw!r}")


def _bad_request(message):
    return jsonify({"error": message}), 400


# ──────────────────────────────────────────────────────────────
# 피보나치 회로
# ──────────────────────────────────────────────────────────────

@circuit_bp.route("/fibonacci")
def fibonacci_page():
    """마지막 실행 결과를 반환한다."""
    return jsonify(db_get("circuit.fibonacci.result") or {})


@circuit_bp.route("/fibonacci/run", methods=["POST"])
def fibonacci_run():
    """피보나치 회로를 합성하고 Mock Prover로 검사한다."""
    data = _params()
    try:
        a = _int_param(data, "a")
        b = _int_param(data, "b")
        steps = _int_param(data, "steps", 7)
        k = _int_param(data, "k", 4)
        public_output = data.get("public_output")
        if public_output in ("", None):
            public_output = None
        else:
            public_output = _int_param(data, "public_output")
    except ValueError as exc:
        return _bad_request(str(exc))

    max_k = current_app.config["MAX_K"]
    if not 0 <= k <= max_k:
        return _bad_request(f"k는 0 이상 {max_k} 이하여야 합니다: {k}")

    instance = [[FR(public_output)]] if public_output is not None else [[]]
    try:
        circuit = FibonacciCircuit(
            FR(a), FR(b), num_steps=steps, expose_output=public_output is not None
        )
        prover = MockProver.run(k, circuit, instance)
    except (PlonkishError, ValueError) as exc:
        logger.info("fibonacci run rejected: %s", exc)
        return _bad_request(str(exc))

    failures = prover.verify()
    result = {
        "params": {"a": a, "b": b, "steps": steps, "k": k, "public_output": public_output},
        "expected": serialize_fr(fibonacci_term(FR(a), FR(b), steps + 2)),
        "gates": [
            {"name": gate.name, "polys": [str(p) for p in gate.polys]}
            for gate in prover.cs.gates
        ],
        "grid": serialize_grid(prover),
        "regions": serialize_regions(prover.regions),
        "copy_classes": serialize_copy_classes(prover.grid.copies),
        "status": prover.status.value,
        "satisfied": not failures,
        "failures": [serialize_failure(f) for f in failures],
    }
    db_set("circuit.fibonacci.result", result)
    return jsonify(result)


@circuit_bp.route("/fibonacci/clear", methods=["POST"])
def fibonacci_clear():
    """저장된 회로 데이터를 모두 삭제한다."""
    db_remove_prefix("circuit.")
    return jsonify({})
