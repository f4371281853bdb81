from __future__ import annotations

from flask import Flask

from ..common.http import (
    arg_bool,
    arg_date,
    arg_enum,
    arg_int,
    arg_str,
    json_endpoint,
    page_args,
    page_response,
    permission_required,
    request_json,
    success,
)
from ..container import Container
from ..core.enums import IndentStatus, PaymentStatus, PermissionAction

MODULE = "textbooks"


def register(app: Flask, container: Container) -> None:
    books = container.textbook_service
    indents = container.indent_service

    @app.route("/api/textbooks", methods=["GET"], endpoint="textbooks_list")
    @json_endpoint("Server error while fetching textbooks")
    @permission_required(MODULE, PermissionAction.READ)
    def list_books(user):
        page, limit = page_args()
        result = books.list_books(
            user,
            search=arg_str("search"),
            class_id=arg_int("classId"),
            subject=arg_str("subject"),
            academic_year=arg_str("academicYear"),
            availability=arg_str("availability"),
            sort_by=arg_str("sortBy") or "title",
            ascending=arg_str("sortOrder") != "desc",
            page=page,
            limit=limit,
        )
        return page_response(result, "Textbooks retrieved successfully")

    @app.route("/api/textbooks/stats/overview", methods=["GET"], endpoint="textbooks_stats")
    @json_endpoint("Server error while fetching textbook statistics")
    @permission_required(MODULE, PermissionAction.READ)
    def book_stats(user):
        return success(books.stats(user), "Textbook statistics retrieved successfully")

    @app.route("/api/textbooks/<int:book_id>", methods=["GET"], endpoint="textbooks_get")
    @json_endpoint("Server error while fetching textbook")
    @permission_required(MODULE, PermissionAction.READ)
    def get_book(user, book_id: int):
        return success(books.get_book(user, book_id).listing(), "Textbook retrieved successfully")

    @app.route("/api/textbooks", methods=["POST"], endpoint="textbooks_create")
    @json_endpoint("Server error while creating textbook")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_book(user):
        return success(books.create_book(user, request_json()), "Textbook created successfully", status=201)

    @app.route("/api/textbooks/<int:book_id>", methods=["PUT"], endpoint="textbooks_update")
    @json_endpoint("Server error while updating textbook")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_book(user, book_id: int):
        return success(books.update_book(user, book_id, request_json()), "Textbook updated successfully")

    @app.route("/api/textbooks/<int:book_id>/stock", methods=["PUT"], endpoint="textbooks_stock")
    @json_endpoint("Server error while adjusting stock")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def adjust_stock(user, book_id: int):
        return success(books.adjust_stock(user, book_id, request_json()), "Stock adjusted successfully")

    @app.route("/api/textbooks/<int:book_id>", methods=["DELETE"], endpoint="textbooks_delete")
    @json_endpoint("Server error while deleting textbook")
    @permission_required(MODULE, PermissionAction.DELETE)
    def delete_book(user, book_id: int):
        books.delete_book(user, book_id)
        return success(message="Textbook deleted successfully")

    @app.route("/api/textbook-indents", methods=["GET"], endpoint="indents_list")
    @json_endpoint("Server error while fetching textbook indents")
    @permission_required(MODULE, PermissionAction.READ)
    def list_indents(user):
        page, limit = page_args()
        result = indents.list_indents(
            user,
            search=arg_str("search"),
            student_id=arg_int("studentId"),
            status=arg_enum("status", IndentStatus),
            payment_status=arg_enum("paymentStatus", PaymentStatus),
            class_name=arg_str("class"),
            academic_year=arg_str("academicYear"),
            date_from=arg_date("dateFrom"),
            date_to=arg_date("dateTo"),
            overdue=bool(arg_bool("overdue")),
            sort_by=arg_str("sortBy") or "createdAt",
            ascending=arg_str("sortOrder") == "asc",
            page=page,
            limit=limit,
        )
        return page_response(result, "Textbook indents retrieved successfully")

    @app.route("/api/textbook-indents/overdue", methods=["GET"], endpoint="indents_overdue")
    @json_endpoint("Server error while fetching overdue indents")
    @permission_required(MODULE, PermissionAction.READ)
    def overdue_indents(user):
        page, limit = page_args()
        return page_response(indents.overdue(user, page=page, limit=limit), "Overdue indents retrieved successfully")

    @app.route("/api/textbook-indents/stats/overview", methods=["GET"], endpoint="indents_stats")
    @json_endpoint("Server error while fetching indent statistics")
    @permission_required(MODULE, PermissionAction.READ)
    def indent_stats(user):
        return success(indents.stats(user), "Indent statistics retrieved successfully")

    @app.route("/api/textbook-indents/<int:indent_id>", methods=["GET"], endpoint="indents_get")
    @json_endpoint("Server error while fetching textbook indent")
    @permission_required(MODULE, PermissionAction.READ)
    def get_indent(user, indent_id: int):
        return success(indents.get_indent(user, indent_id), "Textbook indent retrieved successfully")

    @app.route("/api/textbook-indents", methods=["POST"], endpoint="indents_create")
    @json_endpoint("Server error while creating textbook indent")
    @permission_required(MODULE, PermissionAction.CREATE)
    def create_indent(user):
        return success(indents.create_indent(user, request_json()), "Textbook indent created successfully", status=201)

    @app.route("/api/textbook-indents/<int:indent_id>/issue", methods=["PUT"], endpoint="indents_issue")
    @json_endpoint("Server error while issuing textbooks")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def issue_indent(user, indent_id: int):
        return success(indents.issue_indent(user, indent_id), "Textbooks issued successfully")

    @app.route("/api/textbook-indents/<int:indent_id>/return", methods=["PUT"], endpoint="indents_return")
    @json_endpoint("Server error while returning textbooks")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def return_items(user, indent_id: int):
        return success(indents.return_items(user, indent_id, request_json()), "Textbooks returned successfully")

    @app.route("/api/textbook-indents/<int:indent_id>/cancel", methods=["PUT"], endpoint="indents_cancel")
    @json_endpoint("Server error while cancelling textbook indent")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def cancel_indent(user, indent_id: int):
        reason = request_json().get("reason")
        return success(indents.cancel_indent(user, indent_id, reason), "Textbook indent cancelled successfully")

    @app.route("/api/textbook-indents/<int:indent_id>/payment", methods=["PUT"], endpoint="indents_payment")
    @json_endpoint("Server error while updating payment")
    @permission_required(MODULE, PermissionAction.UPDATE)
    def update_payment(user, indent_id: int):
        return success(indents.update_payment(user, indent_id, request_json()), "Payment updated successfully")

    @app.route("/api/textbook-indents/<int:indent_id>/receipt", methods=["GET"], endpoint="indents_receipt")
    @json_endpoint("Server error while generating receipt")
    @permission_required(MODULE, PermissionAction.READ)
    def receipt(user, indent_id: int):
        return success(indents.receipt(user, indent_id), "Receipt generated successfully")
