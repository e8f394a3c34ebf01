import os
import logging
from datetime import datetime, timezone

from flask import Flask, jsonify, request
from flask_cors import CORS
from dotenv import load_dotenv

from data_access import get_score_store, get_rank, get_top_scores, save_score
from domain.constants import DEFAULT_TOP_N
from domain.errors import ValidationError
from domain.score_record import parse_timestamp
from services.ranking_engine import RankingEngine

load_dotenv()

app = Flask(__name__)
logging.basicConfig(level=logging.INFO)

MAX_LEADERBOARD_LIMIT = 100

# Allowed origins can be configured via CORS_ALLOWED_ORIGINS env var (comma-separated)
allowed_origins_env = os.getenv("CORS_ALLOWED_ORIGINS")
if allowed_origins_env:
    allowed_origins = [o.strip() for o in allowed_origins_env.split(",") if o.strip()]
else:
    # sensible defaults for local dev
    allowed_origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

CORS(app, resources={r"/api/*": {"origins": allowed_origins}})


def _store_name():
    store = get_score_store()
    return store.backend_name if store is not None else None


@app.route("/api/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "store": _store_name()})


@app.route("/api/leaderboard", methods=["GET"])
def get_leaderboard():
    """
    Get the top scores, score descending then earliest first.

    Query parameters:
    - limit: number of entries (1-100, default 5)

    An unavailable store yields an empty list with offline=true so the
    frontend can render its offline state.
    """
    limit = request.args.get("limit", default=DEFAULT_TOP_N, type=int)
    if limit is None or limit < 1 or limit > MAX_LEADERBOARD_LIMIT:
        return jsonify({"error": f"limit must be between 1 and {MAX_LEADERBOARD_LIMIT}"}), 400

    scores = get_top_scores(limit)
    return jsonify({
        "scores": [record.to_dict() for record in scores],
        "offline": get_score_store() is None,
    })


@app.route("/api/scores", methods=["POST"])
def post_score():
    """
    Save a score and return its rank.

    Body: {"username": str, "score": int}

    Returns:
    - 201: saved, with record fields and rank
    - 400: invalid username or score
    - 503: leaderboard offline or temporarily failing (see "retryable")
    """
    payload = request.get_json(silent=True) or {}

    try:
        result = save_score(payload.get("username"), payload.get("score"))
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    if not result["success"]:
        logging.warning(f"Score not saved: {result.get('error')}")
        return jsonify(result), 503

    result["rank"] = RankingEngine(get_score_store()).compute_rank(
        result["score"], parse_timestamp(result["created_at"])
    )
    return jsonify(result), 201


@app.route("/api/rank", methods=["GET"])
def get_rank_endpoint():
    """
    Get the rank a score would have.

    Query parameters:
    - score: non-negative integer
    - created_at: ISO-8601 timestamp (defaults to now)
    """
    score = request.args.get("score", default=None, type=int)
    created_at_arg = request.args.get("created_at")

    try:
        created_at = parse_timestamp(created_at_arg) if created_at_arg else datetime.now(timezone.utc)
        rank = get_rank(score, created_at)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"rank": rank, "score": score, "created_at": created_at.isoformat()})


if __name__ == "__main__":
    # Run the Flask app in debug mode.
    app.run(debug=os.getenv("FLASK_DEBUG"))
