from flask import Flask, request, jsonify
from flask_cors import CORS
from royalty_engine import OwnershipSplitError
from royalty_engine.processor import (
    calculate_royalty_from_dict,
    calculate_split_royalty_from_dict,
    project_royalty_from_dict,
)
import os
from decimal import InvalidOperation
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes
CORS(app)


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Royalty Calculation Engine API",
        "version": "1.0",
        "endpoints": {
            "calculate_royalty": "/calculate_royalty [POST]",
            "calculate_split_royalty": "/calculate_split_royalty [POST]",
            "project_royalty": "/project_royalty [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


def _run(handler, label: str):
    try:
        input_data = request.get_json(force=True, silent=True)

        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        subject = input_data.get("author_id") or input_data.get("title_id") or "Unknown"
        logger.info(f"Processing {label}: {subject}")

        result = handler(input_data)

        logger.info(f"{label} processed: {subject} success={result['success']}")

        return jsonify(result), 200

    except OwnershipSplitError as e:
        # Corrupt ownership data upstream
        logger.error(f"Ownership reconciliation failed: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "reconciliation_failed"
        }), 422

    except (ValueError, KeyError, TypeError, InvalidOperation) as e:
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": f"Validation error: {str(e)}",
            "status": "validation_failed"
        }), 400

    except Exception as e:
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during processing",
            "status": "failed"
        }), 500


@app.route("/calculate_royalty", methods=["POST"])
def calculate_royalty():
    """Calculate one author's royalty for a period"""
    return _run(calculate_royalty_from_dict, "royalty calculation")


@app.route("/calculate_split_royalty", methods=["POST"])
def calculate_split_royalty():
    """Calculate a title's royalty split across co-authors"""
    return _run(calculate_split_royalty_from_dict, "split royalty calculation")


@app.route("/project_royalty", methods=["POST"])
def project_royalty():
    """Project sales velocity and annual royalty for a contract"""
    return _run(project_royalty_from_dict, "royalty projection")


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
