"""
PLONKish 회로 학습용 Flask 앱
===============================

실행:
    flask --app app run

설정 (우선순위 낮은 순):
    1. 기본값: SECRET_KEY, DB_PATH=None (메모리 DB), MAX_K=10
    2. 환경 변수: PLONKISH_DB_PATH=db.json 처럼 PLONKISH_ 접두사
    3. create_app(config)에 넘긴 매핑
"""

import logging

from flask import Flask, jsonify
from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from circuit_routes import circuit_bp, init_circuit_bp


def create_app(config=None):
    app = Flask(__name__)
    app.config.from_mapping(
        SECRET_KEY="key",
        DB_PATH=None,
        MAX_K=10,
    )
    app.config.from_prefixed_env("PLONKISH")
    if config:
        app.config.update(config)

    if app.config["DB_PATH"]:
        db = TinyDB(app.config["DB_PATH"])          # Storage DB
    else:
        db = TinyDB(storage=MemoryStorage)          # Memory DB
    app.extensions["plonkish_db"] = db

    init_circuit_bp(db.table("circuit"))
    app.register_blueprint(circuit_bp)

    @app.route("/")
    def index():
        return jsonify({
            "endpoints": [
                "GET /circuit/fibonacci",
                "POST /circuit/fibonacci/run",
                "POST /circuit/fibonacci/clear",
            ]
        })

    logging.getLogger(__name__).debug("app created (db=%s)", app.config["DB_PATH"] or "memory")
    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(debug=True)
