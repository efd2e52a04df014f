"""
Receipt Routes - Flask Blueprint

Handles the in-app purchase receipt endpoints:
- Sync: fetch, parse and aggregate receipts from the mailboxes
- Demo: random rows for screenshots
- Export: XLSX workbook with monthly summary and detail sheets
- Parse: run the receipt parser on a single posted body

Routes are thin controllers that delegate to receipts_service for business logic.
"""

from datetime import datetime

from flask import Blueprint, Response, jsonify, request

from config.receipt_config import load_receipt_config
from receipt_engine.logging_config import get_logger
from receipt_engine.receipt_parsing import parse_receipt
from services import receipts_service

logger = get_logger(__name__)

receipts_bp = Blueprint("receipts", __name__, url_prefix="/api")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _resolve_start_date():
    config = load_receipt_config()
    start_date = receipts_service.get_start_date(
        request.args.get("startDate"), config.fetch_lookback_months
    )
    return start_date, config


# ============================================================================
# Sync and Demo
# ============================================================================


@receipts_bp.route("/sync", methods=["GET"])
def sync_receipts():
    """
    Fetch and parse receipts from all mailboxes.

    Query params:
        startDate (str): ISO date (YYYY-MM-DD), defaults to three months ago

    Returns:
        List of receipt rows, newest first
    """
    try:
        start_date, config = _resolve_start_date()
    except ValueError as e:
        return jsonify({"error": f"Invalid startDate: {e}"}), 400

    try:
        rows = receipts_service.sync_receipts(start_date, config)
        return jsonify([row.to_dict() for row in rows])

    except Exception as e:
        logger.exception(f"Error syncing receipts: {e}")
        return jsonify({"error": str(e)}), 500


@receipts_bp.route("/demo", methods=["GET"])
def demo_receipts():
    """
    Generate demo receipt rows.

    Returns:
        List of random receipt rows, newest first
    """
    try:
        rows = receipts_service.generate_demo_rows()
        return jsonify([row.to_dict() for row in rows])

    except Exception as e:
        logger.exception(f"Error generating demo data: {e}")
        return jsonify({"error": str(e)}), 500


# ============================================================================
# Export
# ============================================================================


@receipts_bp.route("/export-xlsx", methods=["GET"])
def export_xlsx():
    """
    Export synced receipts as an XLSX workbook.

    Query params:
        startDate (str): ISO date (YYYY-MM-DD), defaults to three months ago

    Returns:
        Workbook attachment named receipts_<today>.xlsx
    """
    try:
        start_date, config = _resolve_start_date()
    except ValueError as e:
        return jsonify({"error": f"Invalid startDate: {e}"}), 400

    try:
        rows = receipts_service.sync_receipts(start_date, config)
        workbook = receipts_service.export_receipts_xlsx(rows)

        today = datetime.now().date().isoformat()
        return Response(
            workbook,
            mimetype=XLSX_MIMETYPE,
            headers={"Content-Disposition": f"attachment; filename=receipts_{today}.xlsx"},
        )

    except Exception as e:
        logger.exception(f"Error exporting XLSX: {e}")
        return jsonify({"error": str(e)}), 500


# ============================================================================
# Parse
# ============================================================================


@receipts_bp.route("/parse", methods=["POST"])
def parse_single_receipt():
    """
    Parse one receipt body.

    Request body:
        html (str): Raw email body, quoted-printable or decoded

    Returns:
        {orderId, totalPrice, items}
    """
    data = request.get_json(silent=True)

    if not isinstance(data, dict) or not data.get("html"):
        return jsonify({"error": "Missing html"}), 400
    if not isinstance(data["html"], str):
        return jsonify({"error": "html must be a string"}), 400

    try:
        result = parse_receipt(data["html"])
        return jsonify(result.to_dict())

    except Exception as e:
        logger.exception(f"Error parsing receipt: {e}")
        return jsonify({"error": str(e)}), 500
