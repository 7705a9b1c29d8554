# Overview: Flask API routes for projects, members and the activity feed.

from flask import Blueprint, jsonify, request, g

from budgetboard.decorators import require_auth, require_project_action
from budgetboard.services import activity_service, member_service, project_service


projects_bp = Blueprint("projects", __name__, url_prefix="/api/projects")


@projects_bp.get("")
@require_auth
def list_projects():
    return jsonify(project_service.list_projects(g.current_user.id)), 200


@projects_bp.post("")
@require_auth
def create_project():
    data = request.get_json(silent=True) or {}
    project = project_service.create_project(g.current_user, data)
    return jsonify(project.to_dict()), 201


@projects_bp.get("/<project_id>")
@require_auth
@require_project_action("view_project")
def get_project(project_id: str):
    return jsonify(project_service.get_project(project_id, g.current_user.id)), 200


@projects_bp.put("/<project_id>")
@require_auth
@require_project_action("update_project")
def update_project(project_id: str):
    data = request.get_json(silent=True) or {}
    project = project_service.update_project(project_id, g.current_user, data)
    return jsonify(project.to_dict()), 200


@projects_bp.delete("/<project_id>")
@require_auth
@require_project_action("delete_project")
def delete_project(project_id: str):
    project_service.delete_project(project_id)
    return jsonify({"message": "Project deleted successfully."}), 200


@projects_bp.get("/<project_id>/members")
@require_auth
@require_project_action("view_members")
def list_members(project_id: str):
    return jsonify(member_service.list_members(project_id)), 200


@projects_bp.post("/<project_id>/members")
@require_auth
@require_project_action("invite_member")
def invite_member(project_id: str):
    data = request.get_json(silent=True) or {}
    member = member_service.invite_member(
        project_id, g.current_user, data.get("email"), data.get("role")
    )
    return jsonify(member), 201


@projects_bp.put("/<project_id>/members/<user_id>")
@require_auth
@require_project_action("change_member_role")
def update_member_role(project_id: str, user_id: str):
    data = request.get_json(silent=True) or {}
    member_service.update_member_role(project_id, user_id, data.get("role"), g.current_user)
    return jsonify({"message": "Role updated."}), 200


@projects_bp.delete("/<project_id>/members/<user_id>")
@require_auth
@require_project_action("remove_member")
def remove_member(project_id: str, user_id: str):
    member_service.remove_member(project_id, user_id, g.current_user)
    return jsonify({"message": "Member removed."}), 200


@projects_bp.get("/<project_id>/activities")
@require_auth
@require_project_action("view_activity")
def list_activities(project_id: str):
    return jsonify(activity_service.list_activities(project_id)), 200
