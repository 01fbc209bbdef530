import logging
import sqlite3

from flask import Flask, jsonify, request

import db_writer
from config import CONFIG

logger = logging.getLogger(__name__)


def create_app(db_path=None):
    """Record service over the sqlite save table, answering {success, data} envelopes."""
    app = Flask(__name__)
    app.config["DATABASE"] = db_path or CONFIG.persistence.sqlite_path
    db_writer.init_db(app.config["DATABASE"])

    @app.route("/api/game_data", methods=["GET"])
    def list_game_data():
        """Every save, most recently saved first."""
        try:
            records = db_writer.list_records(app.config["DATABASE"])
            return jsonify({"success": True, "data": records})
        except sqlite3.Error as e:
            logger.error(f"Database error: {e}")
            return jsonify({"success": False, "error": "Database error occurred"}), 500

    @app.route("/api/game_data", methods=["POST"])
    def create_game_data():
        record = request.get_json(silent=True)
        if not isinstance(record, dict):
            return jsonify({"success": False, "error": "Expected a JSON object"}), 400
        try:
            stored = db_writer.insert_record(app.config["DATABASE"], record)
            return jsonify({"success": True, "data": stored}), 201
        except sqlite3.Error as e:
            logger.error(f"Database error: {e}")
            return jsonify({"success": False, "error": "Database error occurred"}), 500

    @app.route("/api/game_data/<record_id>", methods=["PUT"])
    def update_game_data(record_id):
        record = request.get_json(silent=True)
        if not isinstance(record, dict):
            return jsonify({"success": False, "error": "Expected a JSON object"}), 400
        try:
            stored = db_writer.update_record(app.config["DATABASE"], record_id, record)
        except sqlite3.Error as e:
            logger.error(f"Database error: {e}")
            return jsonify({"success": False, "error": "Database error occurred"}), 500
        if stored is None:
            return jsonify({"success": False, "error": f"No record {record_id}"}), 404
        return jsonify({"success": True, "data": stored})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting record service at http://127.0.0.1:5000/api/game_data")
    create_app().run(debug=True, port=5000)
