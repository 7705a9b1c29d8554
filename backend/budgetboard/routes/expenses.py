# Overview: Flask API routes for project expenses and budget summaries.

from flask import Blueprint, jsonify, request, g

from budgetboard.decorators import require_auth, require_project_action
from budgetboard.services import expense_service


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/projects/<project_id>/expenses")


@expenses_bp.get("")
@require_auth
@require_project_action("view_expenses")
def list_expenses(project_id: str):
    """Expenses newest first, plus {total_budget, used_budget, remaining, percent_used}."""
    return jsonify(expense_service.list_expenses(project_id)), 200


@expenses_bp.post("")
@require_auth
@require_project_action("create_expense")
def create_expense(project_id: str):
    data = request.get_json(silent=True) or {}
    expense = expense_service.create_expense(project_id, g.current_user, data)
    return jsonify(expense), 201


@expenses_bp.put("/<expense_id>")
@require_auth
@require_project_action("update_expense")
def update_expense(project_id: str, expense_id: str):
    data = request.get_json(silent=True) or {}
    expense = expense_service.update_expense(project_id, expense_id, g.current_user, data)
    return jsonify(expense.to_dict()), 200


@expenses_bp.delete("/<expense_id>")
@require_auth
@require_project_action("delete_expense")
def delete_expense(project_id: str, expense_id: str):
    expense_service.delete_expense(project_id, expense_id, g.current_user)
    return jsonify({"message": "Expense deleted."}), 200


@expenses_bp.get("/summary/categories")
@require_auth
@require_project_action("view_expenses")
def category_summary(project_id: str):
    return jsonify(expense_service.category_summary(project_id)), 200
