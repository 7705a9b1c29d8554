# Overview: Flask API routes for the task board, task comments and task expenses.

from flask import Blueprint, jsonify, request, g

from budgetboard.decorators import require_auth, require_project_action
from budgetboard.services import expense_service, task_service


tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/projects/<project_id>/tasks")


@tasks_bp.get("")
@require_auth
@require_project_action("view_tasks")
def list_tasks(project_id: str):
    return jsonify(task_service.list_tasks(project_id)), 200


@tasks_bp.post("")
@require_auth
@require_project_action("create_task")
def create_task(project_id: str):
    data = request.get_json(silent=True) or {}
    task = task_service.create_task(project_id, g.current_user, data)
    return jsonify(task.to_dict()), 201


@tasks_bp.put("/<task_id>")
@require_auth
@require_project_action("update_task")
def update_task(project_id: str, task_id: str):
    data = request.get_json(silent=True) or {}
    task = task_service.update_task(project_id, task_id, g.current_user, data)
    return jsonify(task.to_dict()), 200


@tasks_bp.delete("/<task_id>")
@require_auth
@require_project_action("delete_task")
def delete_task(project_id: str, task_id: str):
    task_service.delete_task(project_id, task_id, g.current_user)
    return jsonify({"message": "Task deleted."}), 200


@tasks_bp.get("/<task_id>/comments")
@require_auth
@require_project_action("view_tasks")
def list_comments(project_id: str, task_id: str):
    return jsonify(task_service.list_comments(project_id, task_id)), 200


@tasks_bp.post("/<task_id>/comments")
@require_auth
@require_project_action("comment_task")
def add_comment(project_id: str, task_id: str):
    data = request.get_json(silent=True) or {}
    comment = task_service.add_comment(project_id, task_id, g.current_user, data.get("content"))
    return jsonify(comment), 201


@tasks_bp.get("/<task_id>/expenses")
@require_auth
@require_project_action("view_expenses")
def list_task_expenses(project_id: str, task_id: str):
    return jsonify(expense_service.list_task_expenses(project_id, task_id)), 200
