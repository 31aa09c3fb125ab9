"""
Course registry blueprint.

Endpoints:
    GET    /api/courses                             : list (stream, programType filters)
    POST   /api/courses                             : register a course
    GET    /api/courses/<id>                        : one course
    PUT    /api/courses/<id>                        : update (pl / admin)
    DELETE /api/courses/<id>                        : delete (pl / admin)
    GET    /api/courses/by-stream/<programType>     : courses keyed by stream
    GET    /api/courses/lecturer/<lecturerName>     : a lecturer's courses
"""

from flask import Blueprint, jsonify, request

from faculty_reporting.blueprints import json_body, list_response, scope_args
from faculty_reporting.middleware.permission_required import require_role
from faculty_reporting.services import course_service
from faculty_reporting.utils.helpers import filter_value

course_bp = Blueprint("courses", __name__, url_prefix="/api/courses")


@course_bp.route("", methods=["GET"])
def list_courses():
    stream, program_type = scope_args()
    return list_response(course_service.list_courses(stream=stream, program_type=program_type))


@course_bp.route("", methods=["POST"])
def create_course():
    course = course_service.create_course(json_body())
    return jsonify({"success": True, "message": "Course added successfully", "course": course}), 201


@course_bp.route("/<int:course_id>", methods=["GET"])
def get_course(course_id):
    return jsonify({"success": True, "course": course_service.get_course(course_id)}), 200


@course_bp.route("/<int:course_id>", methods=["PUT"])
@require_role("pl", "admin")
def update_course(course_id):
    course = course_service.update_course(course_id, json_body())
    return jsonify({"success": True, "message": "Course updated successfully", "course": course}), 200


@course_bp.route("/<int:course_id>", methods=["DELETE"])
@require_role("pl", "admin")
def delete_course(course_id):
    course_service.delete_course(course_id)
    return jsonify({"success": True, "message": "Course deleted successfully"}), 200


@course_bp.route("/by-stream/<program_type>", methods=["GET"])
def courses_by_stream(program_type):
    grouped = course_service.courses_by_stream(
        filter_value(program_type), stream=filter_value(request.args.get("stream")),
    )
    return jsonify({"success": True, "data": grouped}), 200


@course_bp.route("/lecturer/<lecturer_name>", methods=["GET"])
def courses_for_lecturer(lecturer_name):
    courses = course_service.courses_for_lecturer(
        lecturer_name, program_type=filter_value(request.args.get("programType")),
    )
    return list_response(courses)
