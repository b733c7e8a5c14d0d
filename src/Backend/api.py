"""
Visual Roadmap — Flask REST API
===============================
Exposes the roadmap pipeline (graph builder, layered layout, edge reducer,
summary) as JSON endpoints for the frontend.

The request body carries already-categorised content; parsing free text
into categories happens upstream.

Endpoints
---------
POST /api/roadmap            — Build a positioned roadmap for a topic
POST /api/roadmap/hierarchy  — Same input, grouped by section instead
GET  /api/health             — Health check
"""
from __future__ import annotations

import logging
import time
import traceback
from typing import Any

from flask import Flask, jsonify, request
from flask_cors import CORS

from generator import Roadmap, generate_roadmap
from layout import LayoutConfig
from summary import build_hierarchical_model

# ── App setup ───────────────────────────────────────────────────────
app = Flask(__name__)
CORS(app)  # allow requests from the Vite dev server

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(message)s")
log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════
def _roadmap_from_body(body: dict[str, Any]) -> Roadmap:
    """Validate the request body and run the pipeline (ValueError → 400)."""
    if not isinstance(body, dict):
        raise ValueError("request body must be a JSON object")
    topic = body.get("topic")
    if not isinstance(topic, str) or not topic.strip():
        raise ValueError("missing 'topic' field")
    source = body.get("source")
    if source is not None and not isinstance(source, str):
        raise ValueError("'source' must be a string")
    return generate_roadmap(
        topic,
        body.get("content"),
        source_text=source,
        layout_config=LayoutConfig.from_dict(body.get("layout")),
    )


# ═══════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════
@app.route("/api/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"})


@app.route("/api/roadmap", methods=["POST"])
def roadmap():
    """
    Build a visual roadmap.

    Request JSON:  { "topic": "Python",
                     "content": { "prerequisites": [...], "coreTopics": [...],
                                  "projects": [...], "advancedTopics": [...] },
                     "source": "optional raw text for tags",
                     "layout": { "hGap": 320, "vGap": 190, "iterations": 3 } }
    Response JSON: roadmap + { "timing": { "compute_ms": ..., "graph_ms": ..., "layout_ms": ..., "edges_ms": ... } }
    """
    body = request.get_json(silent=True) or {}
    t0 = time.time()
    try:
        result = _roadmap_from_body(body)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception as exc:
        log.error("roadmap failed: %s\n%s", exc, traceback.format_exc())
        return jsonify({"error": str(exc)}), 500

    compute_ms = (time.time() - t0) * 1000
    log.info("roadmap  topic=%r  nodes=%d  compute=%.1fms", result.topic, result.total_nodes, compute_ms)
    payload = result.to_dict()
    payload["timing"] = {"compute_ms": round(compute_ms, 2), **result.timings}
    return jsonify(payload)


@app.route("/api/roadmap/hierarchy", methods=["POST"])
def roadmap_hierarchy():
    """
    Same input as /api/roadmap; nodes grouped into titled sections.

    Response JSON: { "id": "...", "topic": "...",
                     "groups": { "prerequisites": { "title": ..., "items": [...] }, ... } }
    """
    body = request.get_json(silent=True) or {}
    try:
        result = _roadmap_from_body(body)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception as exc:
        log.error("roadmap hierarchy failed: %s\n%s", exc, traceback.format_exc())
        return jsonify({"error": str(exc)}), 500
    return jsonify(build_hierarchical_model(result))


# ═══════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
