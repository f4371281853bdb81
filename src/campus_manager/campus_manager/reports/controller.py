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
    permission_required,
    success,
)
from ..container import Container
from ..core.constants import DEFAULT_FEE_DUES_LIMIT, DEFAULT_TRANSPORT_REPORT_LIMIT
from ..core.enums import PermissionAction, TransportType
from .export import summary_rows, xlsx_response

MODULE = "reports"


def _wants_xlsx() -> bool:
    return (arg_str("format") or "").lower() == "xlsx"


def _labelled(rows: list[dict], label: str) -> list[dict]:
    """group_totals rows use `name`; give the column a readable header."""
    return [{label: r["name"], **{k: v for k, v in r.items() if k != "name"}} for r in rows]


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    @app.route("/api/reports/dashboard", methods=["GET"], endpoint="reports_dashboard")
    @json_endpoint("Server error while generating dashboard")
    @permission_required(MODULE, PermissionAction.READ)
    def dashboard(user):
        report = reports.dashboard(user)
        if _wants_xlsx():
            sections = {k: v for k, v in report.items() if isinstance(v, dict)}
            return xlsx_response({"Dashboard": summary_rows(sections)}, "dashboard.xlsx")
        return success(report, "Dashboard data retrieved successfully")

    @app.route("/api/reports/financial", methods=["GET"], endpoint="reports_financial")
    @json_endpoint("Server error while generating financial report")
    @permission_required(MODULE, PermissionAction.READ)
    def financial(user):
        include = arg_bool("includeBreakdown")
        report = reports.financial(
            user,
            start=arg_date("startDate"),
            end=arg_date("endDate"),
            include_breakdown=True if include is None else include,
        )
        if _wants_xlsx():
            sheets = {"Summary": summary_rows({"summary": report["summary"]})}
            if "breakdown" in report["income"]:
                sheets["Income by fee type"] = _labelled(report["income"]["breakdown"], "fee_type")
                sheets["Expenses by category"] = _labelled(report["expenses"]["breakdown"], "category")
            return xlsx_response(sheets, "financial-report.xlsx")
        return success(report, "Financial report generated successfully")

    @app.route("/api/reports/students", methods=["GET"], endpoint="reports_students")
    @json_endpoint("Server error while generating student report")
    @permission_required(MODULE, PermissionAction.READ)
    def students(user):
        report = reports.students(user)
        if _wants_xlsx():
            return xlsx_response(
                {
                    "Classes": report["class_stats"],
                    "Transport": _labelled(report["transport_stats"], "transport"),
                    "Admissions": report["admission_trend"],
                    "Ages": report["age_distribution"],
                },
                "student-report.xlsx",
            )
        return success(report, "Student report generated successfully")

    @app.route("/api/reports/staff", methods=["GET"], endpoint="reports_staff")
    @json_endpoint("Server error while generating staff report")
    @permission_required(MODULE, PermissionAction.READ)
    def staff(user):
        report = reports.staff(user)
        if _wants_xlsx():
            return xlsx_response(
                {
                    "Departments": _labelled(report["department_stats"], "department"),
                    "Salary": report["salary_stats"],
                    "Experience": report["experience_stats"],
                },
                "staff-report.xlsx",
            )
        return success(report, "Staff report generated successfully")

    @app.route("/api/reports/fees", methods=["GET"], endpoint="reports_fees")
    @json_endpoint("Server error while generating fee report")
    @permission_required(MODULE, PermissionAction.READ)
    def fees(user):
        report = reports.fees(user, start=arg_date("startDate"), end=arg_date("endDate"))
        if _wants_xlsx():
            return xlsx_response(
                {
                    "Fee types": _labelled(report["fee_type_stats"], "fee_type"),
                    "Payment methods": _labelled(report["payment_method_stats"], "payment_method"),
                    "Classes": _labelled(report["class_wise_stats"], "class_name"),
                    "Daily": report["daily_collection"],
                },
                "fee-report.xlsx",
            )
        return success(report, "Fee report generated successfully")

    @app.route("/api/reports/fee-dues", methods=["GET"], endpoint="reports_fee_dues")
    @json_endpoint("Server error while generating fee dues report")
    @permission_required(MODULE, PermissionAction.READ)
    def fee_dues(user):
        export = _wants_xlsx()
        page, limit = page_args(DEFAULT_FEE_DUES_LIMIT)
        report, dues = reports.fee_dues(user, class_id=arg_int("classId"), page=page, limit=None if export else limit)
        if export:
            aging = [{"bucket": label, **values} for label, values in report["aging_analysis"].items()]
            return xlsx_response(
                {"Dues": dues.items, "Aging": aging, "Classes": report["class_wise_breakdown"]},
                "fee-dues-report.xlsx",
            )
        return success({**report, "dues": dues.items}, "Fee dues report generated successfully", pagination=dues.meta())

    @app.route("/api/reports/transport", methods=["GET"], endpoint="reports_transport")
    @json_endpoint("Server error while generating transport report")
    @permission_required(MODULE, PermissionAction.READ)
    def transport(user):
        export = _wants_xlsx()
        page, limit = page_args(DEFAULT_TRANSPORT_REPORT_LIMIT)
        report, students = reports.transport(
            user,
            transport_type=arg_enum("transportType", TransportType),
            page=page,
            limit=None if export else limit,
        )
        if export:
            return xlsx_response(
                {
                    "Students": students.items,
                    "Routes": report["route_wise_breakdown"],
                    "Classes": report["class_wise_breakdown"],
                },
                "transport-report.xlsx",
            )
        return success(
            {**report, "students": students.items}, "Transport report generated successfully", pagination=students.meta()
        )
