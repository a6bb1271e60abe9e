"""
Partner company directory (Companies page and the company picker in the
pickup request dialog).
"""

from flask import Blueprint, request, jsonify

import catalog

companies_bp = Blueprint("companies", __name__, url_prefix="/api/companies")


@companies_bp.route("", methods=["GET"])
def list_companies():
    """
    Query params:
      type   -- "all" | "recycling" | "incineration" (default: all)
      search -- case-insensitive substring of the company name
    """
    company_type = request.args.get("type") or "all"
    if company_type != "all" and company_type not in catalog.COMPANY_TYPES:
        return jsonify({"error": "type must be one of: all, {}".format(", ".join(catalog.COMPANY_TYPES))}), 400

    companies = catalog.filter_companies(company_type, request.args.get("search"))
    return jsonify({
        "success": True,
        "companies": companies,
        "total": len(companies),
    }), 200


@companies_bp.route("/<int:company_id>", methods=["GET"])
def get_company(company_id):
    company = catalog.get_company(company_id)
    if not company:
        return jsonify({"error": "Company not found"}), 404
    return jsonify({"success": True, "company": company}), 200
